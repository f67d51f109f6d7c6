"""capreg CLI: the main entry point for the wishlist/catalog registry."""

import json
from datetime import datetime, timezone
from pathlib import Path

import click
import yaml
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from capreg import __version__
from capreg.config import Settings
from capreg.logger import setup_logging

console = Console()


def _registry(ctx: click.Context):
    from capreg.registry.registry import Registry

    obj = ctx.find_root().obj
    return Registry.from_settings(obj["settings"], audit=obj["audit"])


def _load_document(path: str) -> dict:
    """Read a YAML or JSON input file (YAML is a superset, so one parser covers both)."""
    with open(path) as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise click.BadParameter(f"{path} must contain a mapping")
    return data


def _finish(result, success_message: str):
    """Print the outcome of a registry operation; exit non-zero on rejection."""
    if not result.ok:
        console.print(f"  [red]x[/] {escape(f'[{result.error.kind.value}] {result.error.message}')}")
        raise SystemExit(1)
    console.print(f"  [green]v[/] {success_message}")
    return result.value


@click.group()
@click.version_option(version=__version__)
@click.option("--wishlist", "wishlist_path", default=None, help="Path to wishlist.json")
@click.option("--catalog", "catalog_path", default=None, help="Path to catalog.json")
@click.option("--no-audit", is_flag=True, help="Do not write the audit trail")
@click.pass_context
def main(ctx: click.Context, wishlist_path: str | None, catalog_path: str | None, no_audit: bool):
    """capreg: wishlist and capability catalog registry.

    Frontend agents request capabilities on the wishlist; backend agents
    claim and build them, then publish them to the catalog together with
    a usage block and a conformant client SDK.
    """
    settings = Settings.from_env()
    if wishlist_path:
        settings.wishlist_path = Path(wishlist_path)
    if catalog_path:
        settings.catalog_path = Path(catalog_path)
    setup_logging(settings)
    ctx.obj = {"settings": settings, "audit": not no_audit}


# ── Wishlist ─────────────────────────────────────────────────────────


@main.group()
def wishlist():
    """Request, claim and complete wishlist items."""


def _draft_options(fn):
    for option in reversed(
        [
            click.option("--name", default="", help="Short human-readable name"),
            click.option("--category", "-c", required=True, help="api, sdk, model, service or infra"),
            click.option("--description", "-d", default="", help="What is needed"),
            click.option("--reason", default="", help="Why it is needed"),
            click.option("--by", "requested_by", required=True, help="Requesting agent"),
        ]
    ):
        fn = option(fn)
    return fn


@wishlist.command()
@click.argument("item_id")
@_draft_options
@click.pass_context
def add(ctx, item_id, name, category, description, reason, requested_by):
    """Add a new wishlist item (fails if the id exists)."""
    reg = _registry(ctx)
    draft = {
        "id": item_id,
        "name": name,
        "category": category,
        "description": description,
        "reason": reason,
        "requested_by": requested_by,
    }
    item = _finish(reg.create_wishlist_item(draft), f"Created {item_id}")
    console.print(f"    status={item.status.value} votes={item.votes}")


@wishlist.command()
@click.argument("item_id")
@_draft_options
@click.pass_context
def request(ctx, item_id, name, category, description, reason, requested_by):
    """Request an item: creates it, or upvotes it if already requested."""
    reg = _registry(ctx)
    draft = {
        "id": item_id,
        "name": name,
        "category": category,
        "description": description,
        "reason": reason,
        "requested_by": requested_by,
    }
    item = _finish(reg.request_item(draft), f"Requested {item_id}")
    console.print(f"    votes={item.votes}")


@wishlist.command()
@click.argument("item_id")
@click.option("--by", "actor", default="", help="Voting agent")
@click.pass_context
def upvote(ctx, item_id, actor):
    """Add a vote to an existing item."""
    item = _finish(_registry(ctx).upvote(item_id, actor=actor), f"Upvoted {item_id}")
    console.print(f"    votes={item.votes}")


@wishlist.command()
@click.argument("item_id")
@click.option("--by", "actor", required=True, help="Agent claiming the item")
@click.pass_context
def claim(ctx, item_id, actor):
    """Claim a pending item (pending -> building)."""
    reg = _registry(ctx)
    _finish(reg.transition(item_id, "building", actor, {"assigned": actor}), f"{item_id} is building ({actor})")


@wishlist.command()
@click.argument("item_id")
@click.option("--by", "actor", required=True, help="Agent releasing the item")
@click.pass_context
def unclaim(ctx, item_id, actor):
    """Release a claimed item (building -> pending)."""
    _finish(_registry(ctx).transition(item_id, "pending", actor), f"{item_id} is pending again")


@wishlist.command()
@click.argument("item_id")
@click.option("--by", "actor", required=True, help="Agent finishing the item")
@click.option("--at", "completed_at", default=None, help="ISO 8601 completion time (default: now)")
@click.pass_context
def complete(ctx, item_id, actor, completed_at):
    """Mark a building item done (building -> done)."""
    completed_at = completed_at or datetime.now(timezone.utc).isoformat(timespec="seconds")
    reg = _registry(ctx)
    _finish(reg.transition(item_id, "done", actor, {"completed_at": completed_at}), f"{item_id} is done")


@wishlist.command()
@click.argument("item_id")
@click.option("--by", "actor", required=True, help="Agent declining the item")
@click.option("--reason", required=True, help="Why it will not be built")
@click.pass_context
def decline(ctx, item_id, actor, reason):
    """Decline an open item (-> wontfix)."""
    reg = _registry(ctx)
    _finish(reg.transition(item_id, "wontfix", actor, {"reason_declined": reason}), f"{item_id} is wontfix")


@wishlist.command(name="list")
@click.option("--status", "-s", default=None, help="Filter by status")
@click.option("--category", "-c", default=None, help="Filter by category")
@click.option("--pending", is_flag=True, help="Pending items by votes (the build queue)")
@click.pass_context
def list_items(ctx, status, category, pending):
    """List wishlist items."""
    reg = _registry(ctx)
    items = reg.list_pending() if pending else reg.list_wishlist(status=status, category=category)

    if not items:
        console.print("[yellow]Wishlist is empty.[/]")
        return

    table = Table(title=f"Wishlist ({len(items)} items)")
    table.add_column("ID", style="cyan")
    table.add_column("Category")
    table.add_column("Votes", justify="right", style="green")
    table.add_column("Status")
    table.add_column("Assigned")
    table.add_column("Description")

    for item in items:
        table.add_row(
            item.id,
            item.category.value,
            str(item.votes),
            item.status.value,
            item.assigned or "",
            item.description[:50],
        )

    console.print(table)


@wishlist.command()
@click.argument("item_id")
@click.pass_context
def show(ctx, item_id):
    """Show one item as JSON."""
    result = _registry(ctx).get_wishlist_item(item_id)
    if not result.ok:
        console.print(f"[red]{escape(result.error.message)}[/]")
        raise SystemExit(1)
    console.print_json(json.dumps(result.value.to_dict()))


@wishlist.command()
@click.argument("item_id")
@click.option("--by", "actor", default="", help="Agent removing the item")
@click.pass_context
def remove(ctx, item_id, actor):
    """Remove an item from the wishlist."""
    _finish(_registry(ctx).remove_wishlist_item(item_id, actor=actor), f"Removed {item_id}")


# ── Catalog ──────────────────────────────────────────────────────────


@main.group()
def catalog():
    """Publish and browse capabilities."""


@catalog.command()
@click.argument("name")
@click.argument("entry_path")
@click.option("--by", "actor", default="", help="Publishing agent (default: the entry's added_by)")
@click.pass_context
def publish(ctx, name, entry_path, actor):
    """Publish a new capability from a YAML/JSON entry file."""
    entry = _finish(
        _registry(ctx).publish_catalog_entry(name, _load_document(entry_path), actor=actor),
        f"Published {name}",
    )
    console.print(f"    version={entry.version}")


@catalog.command()
@click.argument("name")
@click.argument("entry_path")
@click.option("--by", "actor", default="", help="Updating agent")
@click.pass_context
def update(ctx, name, entry_path, actor):
    """Replace an existing capability and bump its version."""
    entry = _finish(
        _registry(ctx).update_catalog_entry(name, _load_document(entry_path), actor=actor),
        f"Updated {name}",
    )
    console.print(f"    version={entry.version}")


@catalog.command(name="list")
@click.pass_context
def list_capabilities(ctx):
    """List all published capabilities."""
    entries = _registry(ctx).list_catalog()

    if not entries:
        console.print("[yellow]Catalog is empty.[/]")
        return

    table = Table(title=f"Catalog ({len(entries)} capabilities)")
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("Version")
    table.add_column("Host")
    table.add_column("Description")

    for name, entry in entries.items():
        table.add_row(name, entry.type.value, entry.version, entry.host, entry.description[:50])

    console.print(table)


@catalog.command(name="show")
@click.argument("name")
@click.pass_context
def show_capability(ctx, name):
    """Show a capability and how to use it."""
    result = _registry(ctx).get_catalog_entry(name)
    if not result.ok:
        console.print(f"[red]{escape(result.error.message)}[/]")
        raise SystemExit(1)

    entry = result.value
    console.print(f"\n[bold cyan]{name}[/] {entry.version} ({entry.type.value})")
    console.print(f"  {entry.description}")
    console.print(f"  host: {entry.host}")
    for endpoint in entry.endpoints:
        console.print(f"    {endpoint}")
    if entry.usage:
        usage = "\n".join([entry.usage.import_line, entry.usage.init, entry.usage.example])
        console.print(Panel(f"{usage}\n# -> {entry.usage.returns}", title="Usage"))


@catalog.command(name="remove")
@click.argument("name")
@click.option("--by", "actor", default="", help="Agent removing the capability")
@click.pass_context
def remove_capability(ctx, name, actor):
    """Remove a capability from the catalog."""
    _finish(_registry(ctx).remove_catalog_entry(name, actor=actor), f"Removed {name}")


# ── Conformance ──────────────────────────────────────────────────────


@main.command()
@click.argument("path")
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
def check(path: str, as_json: bool):
    """Check a client SDK against the conformance rules.

    PATH is a Python client module, or a YAML/JSON client descriptor.
    """
    from capreg.conformance.checker import check as run_check
    from capreg.conformance.inspector import inspect_file
    from capreg.conformance.models import ClientDescriptor

    if Path(path).suffix == ".py":
        descriptor = inspect_file(path)
    else:
        descriptor = ClientDescriptor.from_dict(_load_document(path))

    report = run_check(descriptor)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        console.print(f"\n[bold blue]capreg[/] conformance check: {path}\n")
        for r in report.results:
            status = "[green]PASS[/]" if r.passed else "[red]FAIL[/]"
            console.print(f"  {status} {r.name}: {r.detail}")
        console.print(Panel(report.summary(), title="Conformance Result"))

    if not report.passed:
        raise SystemExit(1)


# ── Validate ─────────────────────────────────────────────────────────


@main.command()
@click.pass_context
def validate(ctx):
    """Validate wishlist.json and catalog.json (schema + lifecycle invariants)."""
    issues = _registry(ctx).validate_documents()
    if issues:
        console.print("[red]Validation FAILED:[/]")
        for issue in issues:
            console.print(f"  [red]x[/] {escape(issue)}")
        raise SystemExit(1)
    console.print("  [green]v[/] Documents are valid")


# ── Audit ────────────────────────────────────────────────────────────


@main.command()
@click.option("--actor", default=None, help="Filter by actor")
@click.option("--action", default=None, help="Filter by action")
@click.option("--limit", default=50, show_default=True)
@click.pass_context
def audit(ctx, actor, action, limit):
    """Show recent registry mutations."""
    from capreg.audit import AuditLogger

    settings = ctx.find_root().obj["settings"]
    events = AuditLogger(settings.audit_dir).get_events(actor=actor, action=action, limit=limit)

    if not events:
        console.print("[yellow]No audit events.[/]")
        return

    table = Table(title=f"Audit ({len(events)} events)")
    table.add_column("Time", style="dim")
    table.add_column("Actor", style="cyan")
    table.add_column("Action")
    table.add_column("Resource")
    table.add_column("OK", justify="center")

    for e in events:
        ok = "[green]Y[/]" if e.success else "[red]N[/]"
        table.add_row(e.timestamp, e.actor, e.action, f"{e.resource_type}/{e.resource_id}", ok)

    console.print(table)


# ── Schema ───────────────────────────────────────────────────────────


@main.command(name="schema")
@click.argument("document", type=click.Choice(["wishlist", "catalog"]))
def dump_schema(document: str):
    """Print the JSON Schema for wishlist.json or catalog.json."""
    from capreg.registry.schema import get_schemas

    click.echo(json.dumps(get_schemas()[f"{document}.json"], indent=2))


if __name__ == "__main__":
    main()
