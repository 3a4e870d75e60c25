#!/usr/bin/env python3
"""Live fleet watcher for a relay backend account.

Loads the device list, polls every device's relay flags and prints a line
whenever a device changes. With ``--focus`` one device is also polled for
per-relay telemetry, which is printed alongside.

Configuration comes from the environment (see ``RelayConfig.from_env``):
- RELAY_AUTH_TOKEN (required)
- RELAY_BASE_URL, RELAY_FLEET_POLL_INTERVAL, RELAY_FOCUS_POLL_INTERVAL, ...
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyrelay import RelayClient, RelayConfig, RelayError, RelaySlot  # noqa: E402

DIM = "\033[2m"
GREEN = "\033[32m"
RED = "\033[31m"
RESET = "\033[0m"


def _flag(on: bool) -> str:
    return f"{GREEN}ON {RESET}" if on else f"{DIM}off{RESET}"


def _render(client: RelayClient, device_id: str) -> None:
    state = client.get_device_state(device_id)
    if state is None:
        print(f"{device_id:<16} {RED}removed{RESET}")
        return
    flags = " ".join(f"{slot.key}={_flag(state.is_on(slot))}" for slot in RelaySlot)
    print(f"{device_id:<16} {flags}")
    if device_id != client.focused_device_id or not state.telemetry:
        return
    currency = client.rate.currency
    for slot in RelaySlot:
        reading = state.telemetry_for(slot)
        print(
            f"{'':<16}   {slot.key}: {reading.power_rating_watts:.0f} W, "
            f"{reading.energy_wh:.1f} Wh, total {reading.cumulative_energy_wh:.1f} Wh, "
            f"cost {reading.cost:.2f} {currency}"
        )


def _on_poll_error(name: str, exc: BaseException) -> None:
    print(f"{RED}poll {name} failed: {exc}{RESET}")


async def run() -> None:
    parser = argparse.ArgumentParser(
        description="Watch relay state of every device on the account",
    )
    parser.add_argument("--focus", help="Device id to poll for per-relay telemetry")
    parser.add_argument("--duration", type=float, default=0.0, help="Seconds to run (default: until Ctrl-C)")
    parser.add_argument("--fleet-interval", type=float, help="Override RELAY_FLEET_POLL_INTERVAL")
    parser.add_argument("--focus-interval", type=float, help="Override RELAY_FOCUS_POLL_INTERVAL")
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    overrides: dict[str, float] = {}
    if args.fleet_interval is not None:
        overrides["fleet_poll_interval"] = args.fleet_interval
    if args.focus_interval is not None:
        overrides["focus_poll_interval"] = args.focus_interval
    cfg = RelayConfig.from_env(**overrides)

    async with RelayClient(cfg, on_poll_error=_on_poll_error) as client:
        client.subscribe(lambda device_id: _render(client, device_id))
        devices = await client.refresh_devices()
        if not devices:
            print(f"{DIM}No devices registered.{RESET}")
            return
        for device in devices:
            status = f"{GREEN}online{RESET}" if device.is_online else f"{DIM}offline{RESET}"
            print(f"{device.device_id:<16} {device.name} ({status})")

        if args.focus:
            await client.focus_device(args.focus)
            print(f"{DIM}Rate: {client.rate.rate_per_unit} {client.rate.currency}/kWh{RESET}")

        if args.duration > 0:
            await asyncio.sleep(args.duration)
        else:
            await asyncio.Event().wait()


def main() -> None:
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        print(f"\n{DIM}Done.{RESET}")
    except RelayError as exc:
        print(f"{RED}{exc}{RESET}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
