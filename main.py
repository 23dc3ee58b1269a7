"""Entry point for the console ECG monitor."""

from __future__ import annotations

import argparse
import asyncio
import logging
import math
import sys
from typing import Optional

from ecg_monitor import config
from ecg_monitor.serial_device import SerialByteSource, list_ports
from ecg_monitor.session import ConnectionState, MonitorSession
from ecg_monitor.sim_device import SimulatedByteSource

logger = logging.getLogger("ecg_monitor.main")


def setup_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Stream ECG frames from an HC-05 serial link.")
    ap.add_argument("--port", help="serial port of the paired HC-05 (e.g. /dev/rfcomm0, COM5)")
    ap.add_argument("--baud", type=int, default=config.BAUD_RATE)
    ap.add_argument("--simulate", action="store_true", help="use synthetic frames instead of a port")
    ap.add_argument("--list-ports", action="store_true")
    ap.add_argument("--duration", type=float, default=0.0, help="seconds to run, 0 runs until Ctrl-C")
    ap.add_argument("--verbose", action="store_true")
    return ap.parse_args(argv)


def _report(session: MonitorSession) -> None:
    snap = session.snapshot()
    written = sum(1 for _, value in snap.points if not math.isnan(value))
    logger.info(
        "%s | BPM %s | %s | head %d, %d/%d points",
        snap.state.value,
        snap.bpm if snap.bpm else "--",
        snap.status.value,
        snap.write_head,
        written,
        len(snap.points),
    )


async def run(args: argparse.Namespace) -> int:
    session = MonitorSession(
        on_decode_error=lambda err: logger.debug("Bad frame %r", err.line),
        on_status=lambda msg: logger.info("Status: %s", msg),
    )
    if args.simulate:
        opener = SimulatedByteSource
    else:
        opener = lambda: SerialByteSource.open(args.port, args.baud)

    try:
        await session.connect(opener)
    except RuntimeError:
        return 1

    loop = asyncio.get_running_loop()
    deadline = loop.time() + args.duration if args.duration > 0 else math.inf
    try:
        while session.state is ConnectionState.CONNECTED and loop.time() < deadline:
            await asyncio.sleep(1.0)
            _report(session)
    finally:
        failed = session.state is ConnectionState.FAILED
        await session.disconnect()
    return 1 if failed else 0


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)
    if args.list_ports:
        for port in list_ports():
            print(port)
        return 0
    if not args.simulate and not args.port:
        print("error: --port is required unless --simulate is given", file=sys.stderr)
        return 2
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
