#!/usr/bin/env python3
"""
Interactive demo of the registration intake gateway.

Runs the gateway against an in-memory store and shows:
    1. Sanitization of messy input
    2. Fail-fast validation vs. the all-errors report
    3. Fixed window rate limiting (10 submissions per 5 minutes)
    4. A store failure surfacing as a generic error
"""

import asyncio
import os
import sys

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from intake_gateway.errors import IntakeError
from intake_gateway.services.field_rules import FIELD_RULES
from intake_gateway.services.intake_service import IntakeService
from intake_gateway.services.rate_limiter import FixedWindowRateLimiter
from intake_gateway.services.validator import collect_field_errors
from intake_gateway.storage.store import InMemorySubmissionStore

console = Console()

SAMPLE = {
    "student_name": "  Ana\tMaría   Pérez ",
    "grade": "5º A",
    "address": "Calle 10 # 20-30\n",
    "municipio": "Medellín",
    "sector": "El Poblado",
    "urbanizacion": "Los Balsos",
    "bloque": "Torre 2",
    "father_name": "Carlos Pérez",
    "father_phone": "+57 300 123 4567",
    "father_office_phone": "(604) 444-5555",
    "father_email": "carlos@example.com",
    "mother_name": "Lucía Gómez",
    "mother_phone": "310 555 1234",
    "mother_office_phone": "604 555 0000",
    "mother_email": "lucia@example.com",
    "other_guardian": "Rosa Gómez",
    "other_guardian_phone": "3125550101",
    "responsible_id": "CC-1020304",
    "observaciones": "Ninguna\x00",
}


def sample_form(**overrides) -> dict[str, list[str]]:
    form = {name: [value] for name, value in SAMPLE.items()}
    form["service_options"] = ["AM", "PM", "AM"]
    for name, value in overrides.items():
        if value is None:
            form.pop(name, None)
        else:
            form[name] = [value]
    return form


async def submit(service: IntakeService, client_id: str, form) -> tuple[int, str]:
    async def load_form():
        return form

    try:
        result = await service.handle_submission(client_id, load_form)
    except IntakeError as e:
        return e.status_code, e.message
    return 200, result.message


async def demo_sanitization():
    console.print("\n[bold]Demo 1: Sanitized record[/bold]")

    store = InMemorySubmissionStore()
    service = IntakeService(store, FixedWindowRateLimiter())
    await submit(service, "demo", sample_form())

    table = Table(title="Stored record", box=box.ROUNDED)
    table.add_column("Field", style="cyan")
    table.add_column("Raw", style="dim")
    table.add_column("Stored")

    row = store.records[0]
    for rule in FIELD_RULES[:3]:
        table.add_row(rule.name, repr(SAMPLE[rule.name]), repr(row[rule.name]))
    table.add_row("service_options", "['AM', 'PM', 'AM']", repr(row["service_options"]))
    console.print(table)


async def demo_validation():
    console.print("\n[bold]Demo 2: Fail-fast vs. all errors[/bold]")

    form = sample_form(grade="???", father_email="not-an-email", observaciones=None)
    service = IntakeService(InMemorySubmissionStore(), FixedWindowRateLimiter())
    status, message = await submit(service, "demo", form)

    console.print(f"Write endpoint ({status}): [red]{message}[/red]")

    table = Table(title="Validate endpoint", box=box.ROUNDED)
    table.add_column("Field", style="cyan")
    table.add_column("Error", style="red")
    for field, error in collect_field_errors(form).items():
        table.add_row(field, error)
    console.print(table)


async def demo_rate_limit():
    console.print("\n[bold]Demo 3: Rate limiting[/bold]")
    console.print("Sending 12 submissions from one client (limit: 10 per 5 minutes)\n")

    service = IntakeService(InMemorySubmissionStore(), FixedWindowRateLimiter())

    table = Table(box=box.SIMPLE)
    table.add_column("#", justify="right")
    table.add_column("Status", justify="center")
    table.add_column("Message", style="dim")
    for i in range(12):
        status, message = await submit(service, "203.0.113.7", sample_form())
        style = "green" if status == 200 else "red"
        table.add_row(str(i + 1), f"[{style}]{status}[/{style}]", message)
    console.print(table)


async def demo_store_failure():
    console.print("\n[bold]Demo 4: Store failure[/bold]")

    store = InMemorySubmissionStore(fail_with="connection refused by db.internal:5432")
    service = IntakeService(store, FixedWindowRateLimiter())
    status, message = await submit(service, "demo", sample_form())

    console.print(f"Caller sees ({status}): [red]{message}[/red]")
    console.print("[dim]The store's message is only in the operator log above.[/dim]")


async def main():
    console.print(Panel.fit(
        "[bold cyan]Registration Intake Gateway[/bold cyan]\n\n"
        "Sanitize, validate and rate limit untrusted form submissions.",
        border_style="cyan"
    ))

    await demo_sanitization()
    await demo_validation()
    await demo_rate_limit()
    await demo_store_failure()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        console.print("\n[yellow]Demo interrupted[/yellow]")
