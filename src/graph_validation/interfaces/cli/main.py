import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import colorlog

from graph_validation.config import ServiceConfig, load_config, with_overrides
from graph_validation.core.exceptions import (
    ConfigurationError,
    GraphValidationError,
    NotFoundError,
    PersistenceError,
)

try:
    from graph_validation import __version__ as _PACKAGE_VERSION
except ImportError:  # pragma: no cover
    _PACKAGE_VERSION = "unknown"  # type: ignore[assignment]


def setup_logging(
    verbose: bool = False, warnings_only: bool = False, errors_only: bool = False
) -> None:
    logger = logging.getLogger()
    for h in list(logger.handlers):
        logger.removeHandler(h)
    log_format = (
        "%(asctime)s:%(levelname)s:%(name)s in %(filename)s:%(funcName)s:%(lineno)d: %(message)s"
    )
    log_colors = {
        "DEBUG": "cyan",
        "INFO": "green",
        "WARNING": "yellow",
        "ERROR": "red",
        "CRITICAL": "bold_red",
    }
    stream_handler = colorlog.StreamHandler()
    formatter = colorlog.ColoredFormatter(f"%(log_color)s{log_format}", log_colors=log_colors)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)
    if errors_only:
        logger.setLevel(logging.ERROR)
    elif warnings_only:
        logger.setLevel(logging.WARNING)
    else:
        logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _resolve_config(args: argparse.Namespace) -> ServiceConfig:
    config_path = getattr(args, "config", None)
    config = load_config(Path(config_path) if config_path else None)
    return with_overrides(
        config,
        rules_path=getattr(args, "rules", None),
        max_concurrency=getattr(args, "max_concurrency", None),
    )


def _build_service(args: argparse.Namespace):
    # Imported lazily so `--help` works without the HTTP stack installed
    from graph_validation.service import ValidationService

    return ValidationService.from_config(_resolve_config(args))


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the HTTP service with uvicorn."""
    try:
        import uvicorn
    except ImportError:
        logging.error("uvicorn is required to serve: pip install uvicorn")
        return 3

    from graph_validation.interfaces.http.app import create_app

    try:
        service = _build_service(args)
    except (ConfigurationError, FileNotFoundError) as e:
        logging.error("Invalid configuration: %s", e)
        return 2

    logging.info("Starting validation service on %s:%s", args.host, args.port)
    uvicorn.run(create_app(service), host=args.host, port=int(args.port), log_level="info")
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    """Run one execution in the foreground and print its report.

    Returns:
        0 if every validation succeeded
        1 if the execution could not be created or the run itself failed
        2 if any validation found violations or could not be evaluated
    """
    try:
        service = _build_service(args)
    except (ConfigurationError, FileNotFoundError) as e:
        logging.error("Invalid configuration: %s", e)
        return 1

    rules = service.catalog.for_set(args.validation_set)
    if not rules:
        logging.warning("No validations configured for set %s", args.validation_set)

    async def _run():
        try:
            return await service.run(args.validation_set)
        finally:
            await service.aclose()

    try:
        execution, report = asyncio.run(_run())
    except PersistenceError as e:
        logging.error("Could not create execution: %s", e)
        return 1
    except ValueError as e:
        logging.error("Invalid validation set: %s", e)
        return 1

    if report is None:
        logging.error("Execution %s failed, see log for details", execution.id)
        return 1

    print(report.to_console_summary())

    if args.report_json:
        report_path = Path(args.report_json)
        report_path.parent.mkdir(parents=True, exist_ok=True)
        with open(report_path, "w", encoding="utf-8") as f:
            f.write(report.to_json())
        logging.info("JSON report saved: %s", report_path)

    return 2 if report.has_failures() else 0


def cmd_list(args: argparse.Namespace) -> int:
    """Print the configured validations, optionally limited to one set."""
    from graph_validation.validation.registry import RuleCatalog

    try:
        config = _resolve_config(args)
        catalog = RuleCatalog.load(config.rules_path)
    except (ConfigurationError, FileNotFoundError) as e:
        logging.error("Invalid configuration: %s", e)
        return 2

    rules = catalog.for_set(args.validation_set)
    for i, rule in enumerate(rules, start=1):
        sets = ", ".join(rule.validation_sets) or "-"
        print(f"[{i}] {rule.name}: {rule.description} (sets: {sets})")
    if not rules:
        print("No validations configured.")
    return 0


def cmd_recover(args: argparse.Namespace) -> int:
    """Cancel executions left ongoing by a crashed process."""
    try:
        service = _build_service(args)
    except (ConfigurationError, FileNotFoundError) as e:
        logging.error("Invalid configuration: %s", e)
        return 2

    async def _recover() -> None:
        try:
            await service.executions.recover_on_startup()
        finally:
            await service.aclose()

    try:
        asyncio.run(_recover())
    except PersistenceError as e:
        logging.error("Recovery failed: %s", e)
        return 1
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    """Print an execution and, with --summary, its validation counts."""
    try:
        service = _build_service(args)
    except (ConfigurationError, FileNotFoundError) as e:
        logging.error("Invalid configuration: %s", e)
        return 2

    async def _status():
        try:
            execution = await service.executions.get_execution(args.execution_id)
            summary = None
            if args.summary:
                summary = await service.executions.summarize_validations(args.execution_id)
            return execution, summary
        finally:
            await service.aclose()

    try:
        execution, summary = asyncio.run(_status())
    except NotFoundError as e:
        logging.error("%s", e)
        return 1
    except GraphValidationError as e:
        logging.error("Could not load execution %s: %s", args.execution_id, e)
        return 1

    document = execution.to_jsonapi()
    if summary is not None:
        document["included"] = [summary.to_jsonapi()["data"]]
    print(json.dumps(document, indent=2, ensure_ascii=False))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="graph-validation",
        description=f"Graph Validation Service (v{_PACKAGE_VERSION})",
    )
    p.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    p.add_argument(
        "--warnings-only",
        action="store_true",
        help="Show only warnings and errors (overrides --verbose)",
    )
    p.add_argument(
        "--errors-only",
        action="store_true",
        help="Show only errors (overrides --warnings-only and --verbose)",
    )
    p.add_argument(
        "--config",
        default=None,
        help="Path to a service YAML config. Environment variables override it.",
    )
    p.add_argument(
        "--rules",
        default=None,
        help="Rule catalog: a YAML file or a python module exposing VALIDATIONS "
        "(defaults to config/validations.yaml or $VALIDATION_RULES)",
    )

    sub = p.add_subparsers(dest="command", required=True)

    p_serve = sub.add_parser("serve", help="Run the HTTP service")
    p_serve.add_argument("--host", default="0.0.0.0", help="Host to bind (default 0.0.0.0)")
    p_serve.add_argument("--port", default=80, type=int, help="Port to bind (default 80)")
    p_serve.add_argument(
        "--max-concurrency",
        type=int,
        default=None,
        help="Maximum validations evaluated at once (default unbounded)",
    )
    p_serve.set_defaults(func=cmd_serve)

    p_run = sub.add_parser("run", help="Run one execution and wait for its report")
    p_run.add_argument(
        "--validation-set",
        default=None,
        help="Only run validations of this set (IRI). Runs all validations when omitted.",
    )
    p_run.add_argument(
        "--max-concurrency",
        type=int,
        default=None,
        help="Maximum validations evaluated at once (default unbounded)",
    )
    p_run.add_argument(
        "--report-json",
        default=None,
        help="Write the execution report to this JSON file",
    )
    p_run.set_defaults(func=cmd_run)

    p_list = sub.add_parser("list", help="List configured validations")
    p_list.add_argument("--validation-set", default=None, help="Only list this set (IRI)")
    p_list.set_defaults(func=cmd_list)

    p_recover = sub.add_parser("recover", help="Cancel executions left ongoing by a crash")
    p_recover.set_defaults(func=cmd_recover)

    p_status = sub.add_parser("status", help="Show an execution")
    p_status.add_argument("execution_id", help="Execution identifier")
    p_status.add_argument(
        "--summary", action="store_true", help="Include validation status counts"
    )
    p_status.set_defaults(func=cmd_status)

    return p


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(
        verbose=bool(args.verbose),
        warnings_only=bool(getattr(args, "warnings_only", False)),
        errors_only=bool(getattr(args, "errors_only", False)),
    )
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
