"""Interactive example: pick a preset and watch the map move.

Demonstrates:
- Building a MapExplorer from environment configuration
- Streaming prose with MapExplorer.iter()
- Reading the map view the renderer updated

Usage:
    Add DEEPSEEK_API_KEY=sk-... to .env, then:
    uv run --env-file=.env examples/map_explorer.py
"""

import asyncio

from mapexplorer import MapExplorer, TransportError, configure_logging
from mapexplorer.events import RawResponseEvent, RunCompleteEvent
from mapexplorer.presets import PRESETS, find_preset


async def main():
    configure_logging(log_file="mapexplorer.log")
    explorer = MapExplorer.from_config()
    if explorer.provider is None:
        print("API key is not set.")
        return

    print("Map Explorer\n")
    for number, preset in enumerate(PRESETS, start=1):
        print(f"  {number}. {preset.label}")

    while True:
        try:
            choice = input("\nPreset number or label (or your own prompt): ")
        except (KeyboardInterrupt, EOFError):
            print("\nGoodbye!")
            break

        if choice.isdigit() and 1 <= int(choice) <= len(PRESETS):
            prompt = PRESETS[int(choice) - 1].prompt
        else:
            try:
                prompt = find_preset(choice).prompt
            except KeyError:
                prompt = choice

        try:
            async for event in explorer.iter(prompt):
                if isinstance(event, RawResponseEvent):
                    print(event.content, end="", flush=True)
                elif isinstance(event, RunCompleteEvent):
                    print()
        except TransportError:
            print("Failed to get recommendation.")
            continue

        view = explorer.renderer.map
        if view is not None and view.marker is not None:
            print(f"📍 {view.marker.position} (zoom {view.zoom})")
        if explorer.renderer.caption:
            print(explorer.renderer.caption)


if __name__ == "__main__":
    asyncio.run(main())
