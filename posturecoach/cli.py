from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .config import load_engine_config, resolve_config_path
from .engine import Engine
from .recording import ReplaySource
from .types import EngineEvent


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="posturecoach",
        description="Desk posture classification and coaching engine.",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    p_replay = sub.add_parser("replay", help="Run the engine over a JSONL landmark recording")
    p_replay.add_argument("--input", required=True, help="Recording path (.jsonl)")
    p_replay.add_argument("--config", default=None, help="Engine config YAML (optional)")
    p_replay.add_argument(
        "--no-mirror",
        action="store_true",
        help="Recording was captured from a non-mirrored preview.",
    )
    p_replay.add_argument("--no-face", action="store_true", help="Ignore face landmarks (no distance issues).")
    p_replay.add_argument("--log", default=None, help="Append engine log lines to this file.")

    p_cfg = sub.add_parser("config", help="Configuration helpers")
    subc = p_cfg.add_subparsers(dest="action", required=True)
    p_show = subc.add_parser("show", help="Print the effective configuration")
    p_show.add_argument("--config", default=None, help="Engine config YAML (optional)")

    return p


def run_replay(
    input_path: Path,
    config_path: Path | None = None,
    mirror: bool | None = None,
    enable_face: bool | None = None,
    log_path: Path | None = None,
    out=None,
) -> int:
    out = out or sys.stdout
    cfg = load_engine_config(config_path)
    updates: dict = {"fps_cap": 0.0}
    if mirror is not None:
        updates["mirror"] = mirror
    if enable_face is not None:
        updates["enable_face"] = enable_face
    cfg = cfg.model_copy(update=updates)

    source = ReplaySource.from_file(input_path)

    def sink(event: EngineEvent) -> None:
        out.write(json.dumps(event.to_dict()) + "\n")

    engine = Engine(source=source, sink=sink, config=cfg, clock=source.clock, log_path=log_path)
    engine.start()
    while not source.exhausted:
        engine.tick()
    engine.stop()
    return 0


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)

    if args.cmd == "replay":
        try:
            return run_replay(
                input_path=Path(args.input),
                config_path=Path(args.config) if args.config else None,
                mirror=False if args.no_mirror else None,
                enable_face=False if args.no_face else None,
                log_path=Path(args.log) if args.log else None,
            )
        except (OSError, ValueError) as exc:
            print(f"replay failed: {exc}", file=sys.stderr)
            return 1

    if args.cmd == "config":
        if args.action == "show":
            cfg_path = resolve_config_path(Path(args.config) if args.config else None)
            cfg = load_engine_config(cfg_path)
            print(f"# source: {cfg_path}{'' if cfg_path.exists() else ' (missing, defaults)'}", file=sys.stderr)
            print(cfg.model_dump_json(indent=2))
            return 0

    return 2


if __name__ == "__main__":
    raise SystemExit(main())
