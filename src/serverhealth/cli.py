"""CLI interface for serverhealth."""

from __future__ import annotations

import argparse
import json
import logging
import sys

from . import __version__
from .config import ServerHealthConfig, load_config


def _setup_logging(cfg: ServerHealthConfig) -> None:
    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _cmd_serve(args: argparse.Namespace, cfg: ServerHealthConfig) -> None:
    """Run the HTTP server."""
    import uvicorn

    from .collector.manager import CollectorManager
    from .server import create_app

    host = args.host or cfg.server.host
    port = args.port or cfg.server.port

    manager = CollectorManager(cfg)
    exporter = None
    if cfg.otel.enabled:
        from .exporter.otel import OtelExporter
        exporter = OtelExporter(cfg.otel)
        manager.add_sink(exporter.export)

    app = create_app(cfg, manager)
    print(f"Server Health Dashboard listening on http://{host}:{port}")
    try:
        uvicorn.run(app, host=host, port=port, log_level=cfg.log_level.lower())
    finally:
        if exporter is not None:
            exporter.shutdown()


def _cmd_snapshot(args: argparse.Namespace, cfg: ServerHealthConfig) -> None:
    """Collect one snapshot and print it as JSON."""
    from .collector.manager import CollectorManager

    # no sampler thread for a one-shot run
    cfg.collector.cpu_mode = "blocking"
    manager = CollectorManager(cfg)
    if cfg.probe.enabled and not args.no_probe:
        manager.refresh_probe_cache()
    print(manager.collect_json(indent=args.indent))


def _cmd_probe(_args: argparse.Namespace, cfg: ServerHealthConfig) -> None:
    """Run one internet speed measurement."""
    from .collector.manager import CollectorManager

    cfg.collector.cpu_mode = "blocking"
    result = CollectorManager(cfg).refresh_probe_cache()
    out = result.to_dict()
    out["method"] = result.method
    print(json.dumps(out, indent=2))


def _cmd_version(_args: argparse.Namespace, _cfg: ServerHealthConfig) -> None:
    print(f"serverhealth {__version__}")


def main(argv: list[str] | None = None) -> None:
    """Entry point for the serverhealth CLI."""
    parser = argparse.ArgumentParser(
        prog="serverhealth",
        description="Serve a JSON snapshot of host health for a polling dashboard",
    )
    parser.add_argument("--config", "-c", default=None, help="Path to serverhealth.yaml")
    sub = parser.add_subparsers(dest="command")

    serve_p = sub.add_parser("serve", help="Start the HTTP server")
    serve_p.add_argument("--host", default=None, help="Bind address")
    serve_p.add_argument("--port", type=int, default=None, help="Listen port")
    serve_p.set_defaults(func=_cmd_serve)

    snap_p = sub.add_parser("snapshot", help="Print one health snapshot")
    snap_p.add_argument("--indent", type=int, default=2, help="JSON indent")
    snap_p.add_argument("--no-probe", action="store_true", help="Skip the internet speed probe")
    snap_p.set_defaults(func=_cmd_snapshot)

    probe_p = sub.add_parser("probe", help="Measure internet speed once")
    probe_p.set_defaults(func=_cmd_probe)

    ver_p = sub.add_parser("version", help="Print version")
    ver_p.set_defaults(func=_cmd_version)

    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    cfg = load_config(args.config)
    _setup_logging(cfg)
    args.func(args, cfg)


if __name__ == "__main__":
    main()
