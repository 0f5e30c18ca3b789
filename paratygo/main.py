"""Entry point for the Paraty GO! backend and its operational scripts."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable

import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from paratygo.config import Settings, settings
from paratygo.emails import render_test_email
from paratygo.health.engine import IntegrationGate, Outcome, ProbeResult, Runner, Subsystem
from paratygo.health.report import render
from paratygo.health.suites import health_suite, monitor_suite
from paratygo.mailer import Mailer

console = Console()
logger = logging.getLogger(__name__)

_STYLES = {
    Outcome.PASSED: ("✅", "green", "PASSED"),
    Outcome.FAILED: ("❌", "red", "FAILED"),
    Outcome.WARNING: ("⚠️ ", "yellow", "WARNING"),
}


def _setup_logging(cfg: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, cfg.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )


def _print_section(subsystem: Subsystem) -> None:
    console.rule(f"[bold cyan]{subsystem.label}")


def _print_result(key: str, result: ProbeResult) -> None:
    icon, style, word = _STYLES[result.outcome]
    line = Text(f"{icon} {result.name}: ")
    line.append(word, style=style)
    if result.detail:
        line.append(f" — {result.detail}")
    console.print(line)
    for note in result.advisories:
        warn_line = Text("⚠️  ")
        warn_line.append("WARNING", style="yellow")
        warn_line.append(f" — {note}")
        console.print(warn_line)


def run_checks(
    subsystems: list[Subsystem],
    title: str,
    gate: IntegrationGate | None = None,
) -> int:
    """Run a probe battery, print the report, return the exit code."""
    runner = Runner(gate=gate, on_result=_print_result, on_subsystem=_print_section)
    summary = runner.run_all(subsystems)
    labels = {r.key: r.label for r in runner.recorder.records()}
    text, code = render(summary, runner.recorder.statuses(), labels=labels, title=title)
    console.print()
    console.print(text, markup=False, highlight=False)
    return code


def _guarded(title: str, body: Callable[[], int]) -> int:
    """Top-level boundary: anything escaping the runner is a fatal error."""
    console.print(Panel(f"🌴 PARATY GO! — {title}", style="bold cyan"))
    try:
        return body()
    except Exception as exc:
        logger.exception("Fatal error during verification")
        console.print(f"[bold red]Fatal error during verification:[/bold red] {exc}")
        return 1


def run_health(cfg: Settings | None = None) -> int:
    cfg = cfg or settings

    def body() -> int:
        subsystems, gate = health_suite(cfg)
        return run_checks(subsystems, "SYSTEM HEALTH REPORT", gate=gate)

    return _guarded("Full health check", body)


def run_monitor(cfg: Settings | None = None) -> int:
    cfg = cfg or settings
    return _guarded(
        "System monitor",
        lambda: run_checks(monitor_suite(cfg), "MONITORING SUMMARY"),
    )


def run_test_email(cfg: Settings | None = None, mailer: Mailer | None = None) -> int:
    """Send the test email to EMAIL_TO; 0 on success."""
    cfg = cfg or settings
    mailer = mailer or Mailer(cfg=cfg)
    console.print(Panel("🌴 PARATY GO! — Email test", style="bold cyan"))
    console.print(f"📧 Sending test email...\n   From: {cfg.email_from}\n   To: {cfg.email_to}\n")

    try:
        message_id = mailer.send(
            subject="✅ Paraty GO! - Teste de Sistema",
            html=render_test_email(),
        )
    except Exception as exc:
        logger.error("Test email failed: %s", exc)
        console.print(f"[red]❌ Error sending email:[/red] {exc}")
        if "not verified" in str(exc):
            console.print(
                "[yellow]⚠️  Hint: the destination address must be verified in Resend. "
                "For testing, use the address registered on the Resend account.[/yellow]"
            )
        return 1

    console.print(f"[green]✅ Email sent![/green]\n   ID: {message_id}")
    console.print(f"[yellow]📬 Check the inbox of {cfg.email_to}[/yellow]")
    return 0


def run_server(cfg: Settings | None = None) -> None:
    """Start the FastAPI server."""
    cfg = cfg or settings
    console.print(Panel("Starting Paraty GO! API Server", style="bold green"))
    uvicorn.run(
        "paratygo.api.server:app",
        host=cfg.api_host,
        port=cfg.server_port,
        reload=False,
    )


# -- Console scripts (no flags) ------------------------------------------------


def health_main() -> None:
    _setup_logging(settings)
    sys.exit(run_health())


def monitor_main() -> None:
    _setup_logging(settings)
    sys.exit(run_monitor())


def test_email_main() -> None:
    _setup_logging(settings)
    sys.exit(run_test_email())


def main() -> None:
    parser = argparse.ArgumentParser(description="Paraty GO! registration backend")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("serve", help="Start the API server")
    sub.add_parser("health", help="Run the full health check")
    sub.add_parser("monitor", help="Run the quick system monitor")
    sub.add_parser("test-email", help="Send a test email to EMAIL_TO")

    args = parser.parse_args()
    _setup_logging(settings)

    if args.command == "serve":
        run_server()
    elif args.command == "health":
        sys.exit(run_health())
    elif args.command == "monitor":
        sys.exit(run_monitor())
    elif args.command == "test-email":
        sys.exit(run_test_email())
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
