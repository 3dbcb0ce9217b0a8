"""
CLI entry point: reconcile run | classify | fix-time | health.

Every command loads config from --config (default config.yaml), prints a
human-readable account of what was inferred, and logs to the journal.
"""

import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click
from dotenv import load_dotenv

from config import AppConfig, RulesConfig, RulesConfigError, load_config, load_rules
from reconcile_core import ExtractionPayloadError

if TYPE_CHECKING:
    from cli.structured_log import StructuredEventLogger

load_dotenv()

logger = logging.getLogger("reconcile")


def _setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s  %(message)s",
        stream=sys.stderr,
    )


def _app_config(ctx: click.Context) -> AppConfig:
    """Load the app config; a missing default file means built-in defaults."""
    path = Path(ctx.obj["config_path"])
    if not path.exists():
        logger.debug("Config file %s not found, using defaults", path)
        return AppConfig()
    return load_config(path)


def _rules(cfg: AppConfig, broker: str | None = None, events: "StructuredEventLogger | None" = None) -> RulesConfig:
    try:
        return load_rules(cfg.rules.path or None, broker=broker)
    except RulesConfigError as exc:
        if events is not None:
            events.error(type(exc).__name__, str(exc))
        raise click.ClickException(str(exc)) from exc


@click.group()
@click.option("--config", "config_path", default="config.yaml", help="Path to config file.")
@click.pass_context
def cli(ctx: click.Context, config_path: str) -> None:
    """reconcile: order-book screenshot extraction to FIFO-matched trades."""
    _setup_logging()
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


# ---------- reconcile run ----------


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--broker", default=None, help="Broker name for rules override (default: payload's broker_detected).")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON instead of the text preview.")
@click.option("--no-journal", is_flag=True, help="Do not append the result to the journal.")
@click.pass_context
def run(ctx: click.Context, file: Path, broker: str | None, as_json: bool, no_journal: bool) -> None:
    """Reconcile an extractor response (fenced or plain JSON) into trades."""
    from cli.output import format_result
    from cli.structured_log import StructuredEventLogger
    from journal import JournalWriter
    from reconcile_core import reconcile
    from reconcile_core.payload import parse_extraction_response, split_payload

    cfg = _app_config(ctx)
    events = StructuredEventLogger(
        file.name,
        enabled=cfg.alerting.structured_logs,
        webhook_url=cfg.alerting.webhook_url,
    )

    try:
        payload = parse_extraction_response(file.read_text(encoding="utf-8"))
        records, metadata = split_payload(payload)
    except UnicodeDecodeError as exc:
        events.error(type(exc).__name__, str(exc))
        raise click.ClickException(f"{file} is not UTF-8 text: {exc}") from exc
    except ExtractionPayloadError as exc:
        events.error(type(exc).__name__, str(exc))
        raise click.ClickException(str(exc)) from exc

    broker = broker or metadata.broker_detected
    events.extraction_start(len(records), broker)
    rules = _rules(cfg, broker, events)
    result = reconcile(payload, rules)

    for rejected in result.rejected:
        events.order_rejected(rejected.source_index, rejected.reason)
    events.trades_matched(len(result.trades), result.total_pnl, len(result.warnings))
    if result.incomplete_orders:
        events.incomplete_detected(
            sorted({item.symbol for item in result.incomplete_orders}),
            sum(item.remaining_quantity for item in result.incomplete_orders),
        )
    logger.debug("Reconciled %s: %d trades, %d incomplete", file, len(result.trades), len(result.incomplete_orders))

    if not no_journal:
        journal = JournalWriter(cfg.journal.path, echo_stdout=cfg.journal.echo_stdout and not as_json)
        journal.record_result(result, source=str(file))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        click.echo(format_result(result))


# ---------- reconcile classify ----------


@cli.command()
@click.argument("symbol")
@click.pass_context
def classify(ctx: click.Context, symbol: str) -> None:
    """Show how a symbol is classified (segment, underlying, strike, lot size)."""
    from cli.output import format_symbol_info
    from reconcile_core.normalizer import canonical_symbol
    from reconcile_core.symbols import classify_symbol

    rules = _rules(_app_config(ctx))
    canonical = canonical_symbol(symbol)
    click.echo(format_symbol_info(canonical, classify_symbol(canonical, rules)))


# ---------- reconcile fix-time ----------


@cli.command("fix-time")
@click.argument("value")
@click.pass_context
def fix_time(ctx: click.Context, value: str) -> None:
    """Show the OCR time correction for VALUE (e.g. 1O:25, 0:25)."""
    from cli.output import format_time_correction
    from reconcile_core.time_correction import correct_time

    rules = _rules(_app_config(ctx))
    click.echo(format_time_correction(correct_time(value, rules)))


# ---------- reconcile health ----------


@cli.command()
@click.pass_context
def health(ctx: click.Context) -> None:
    """Check system health: app config and reconciliation rules.

    Exit code 0 = healthy, 1 = unhealthy.
    """
    checks: list[tuple[str, bool, str]] = []

    try:
        cfg = load_config(ctx.obj["config_path"])
        checks.append(("config", True, f"loaded (journal={cfg.journal.path})"))
    except Exception as e:
        checks.append(("config", False, str(e)))
        _print_health(checks)
        raise SystemExit(1)

    try:
        rules = load_rules(cfg.rules.path or None)
        checks.append(
            (
                "rules",
                True,
                f"validated (version={rules.version}, hours "
                f"{rules.trading_hours.open:%H:%M}-{rules.trading_hours.close:%H:%M})",
            )
        )
    except RulesConfigError as e:
        checks.append(("rules", False, str(e)))

    _print_health(checks)
    healthy = all(ok for _, ok, _ in checks)
    raise SystemExit(0 if healthy else 1)


def _print_health(checks: list[tuple[str, bool, str]]) -> None:
    for name, ok, detail in checks:
        status = "OK" if ok else "FAIL"
        click.echo(f"  [{status}] {name}: {detail}")
    healthy = all(ok for _, ok, _ in checks)
    click.echo(f"\nHealth: {'HEALTHY' if healthy else 'UNHEALTHY'}")


if __name__ == "__main__":
    cli()
