from __future__ import annotations

import argparse
import threading
from pathlib import Path

from lambdalabs_provisioner.config import create, delete, load, load_state, refresh
from lambdalabs_provisioner.engine.handlers import EngineContext


def main() -> None:
    parser = argparse.ArgumentParser(description="Create or tear down declared Lambda resources")
    parser.add_argument("--config", default="lambdalabs.yaml", help="Path to config file")
    parser.add_argument("--destroy", action="store_true", help="Delete every tracked resource")
    parser.add_argument("--timeout", type=float, default=None, help="Per-request timeout (s)")
    args = parser.parse_args()

    config = load(Path(args.config))
    ctx = EngineContext(cancel=threading.Event(), timeout=args.timeout)

    if args.destroy:
        # Instances first, their SSH keys after.
        addresses = sorted(
            load_state(config).resources,
            key=lambda a: not a.startswith("lambdalabs_instance."),
        )
        for address in addresses:
            outcome = delete(config, address, ctx=ctx)
            print(f"- {outcome.value:12} {address}")
        return

    tracked = load_state(config).resources
    for resource in config.resources:
        if resource.address in tracked:
            print(f"= tracked      {resource.address}")
            continue
        inst = create(config, resource.address, ctx=ctx)
        print(f"+ created      {resource.address} [id={inst.id}]")

    state, removed = refresh(config, ctx=ctx)
    for address in removed:
        print(f"! gone         {address}")
    print(f"{len(state.resources)} resource(s) tracked")


if __name__ == "__main__":
    main()
