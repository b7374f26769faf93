# scripts/preview_layout.py

from __future__ import annotations

import json
from pathlib import Path

from claw_round.core import SPAWN_STREAM, expand_spawn_entries, merge_spawn_requests
from claw_round.core.placement import PlacementEngine
from claw_round.presets.basic import default_preset_path, make_session
from claw_round.utils.cli import build_parser
from claw_round.utils.logging_config import configure_logging
from claw_round.utils.preset_loader import load_preset

PROJECT_ROOT = Path(__file__).parent.parent


def main():
    parser = build_parser()
    args = parser.parse_args()
    configure_logging(level=args.log_level)

    preset_path = Path(args.preset) if args.preset is not None else default_preset_path()
    preset = load_preset(preset_path)
    setup = make_session(preset.resolved, seed=args.seed)
    session = setup.session

    # 1. Expand the round pool + inventory exactly like a round start would
    archetypes = expand_spawn_entries(merge_spawn_requests(setup.round_config, setup.inventory))
    max_retries = args.max_retries if args.max_retries is not None else session.machine.timings.max_spawn_retries
    engine = PlacementEngine(session.machine.arena, max_retries=max_retries)

    # 2. Place with the same stream the orchestrator uses
    result = engine.place(archetypes, session.registry.stream(SPAWN_STREAM))

    print(f"Preset {preset.name} | seed {setup.seed} | "
          f"placed {result.placed_count}/{result.requested_count} (skipped {result.skipped})")
    if not args.quiet:
        for i, p in enumerate(result.placements):
            print(f"{i:3d} {p.archetype.name:<12} {p.archetype.display_text():>6} "
                  f"({p.position[0]:7.3f}, {p.position[1]:7.3f}) r={p.archetype.radius}")

    # 3. Optional JSON export
    if args.json is not None:
        out_path = Path(args.json)
        if not out_path.is_absolute():
            out_path = PROJECT_ROOT / out_path
        out_path.parent.mkdir(exist_ok=True, parents=True)
        layout = {
            "seed": setup.seed,
            "preset": str(preset.preset_path),
            "skipped": result.skipped,
            "balls": [
                {
                    "name": p.archetype.name,
                    "category": p.archetype.category.value,
                    "value": p.archetype.value,
                    "radius": p.archetype.radius,
                    "position": p.position.tolist(),
                }
                for p in result.placements
            ],
        }
        out_path.write_text(json.dumps(layout, indent=2), encoding="utf-8")
        print(f"Layout written to {out_path}")


if __name__ == "__main__":
    main()
