#!/usr/bin/env python3
"""
KeyForge - Password generator CLI with a 30-day local history
"""
import logging
import sys
from typing import List, Optional

import click
from tabulate import tabulate

from .config import MAX_LENGTH, MIN_LENGTH, VERSION, get_home, history_path, setup_logging
from .generator import GenerationOptions, ValidationError
from .history import PasswordEntry
from .manager import PasswordHistoryManager
from .storage import StorageError

logger = logging.getLogger(__name__)

CLASS_LABELS = [
    ("uppercase", "Uppercase (A-Z)"),
    ("lowercase", "Lowercase (a-z)"),
    ("digits", "Numbers (0-9)"),
    ("symbols", "Symbols (!@#$...)"),
]


def get_password_manager(ctx: click.Context) -> PasswordHistoryManager:
    """Get or create the password manager for this invocation"""
    if ctx.obj.get('pm') is None:
        ctx.obj['pm'] = PasswordHistoryManager(history_path(ctx.obj['home']))
    return ctx.obj['pm']


def format_created(entry: PasswordEntry) -> str:
    """Human-readable local time for an entry; the stored value is untouched"""
    created = entry.created
    if created is None:
        return entry.created_at
    try:
        return created.astimezone().strftime('%Y-%m-%d %H:%M:%S')
    except (OverflowError, ValueError):
        # outside the range the local timezone conversion can represent
        return entry.created_at


def mask(value: str) -> str:
    return '•' * len(value)


def history_table(entries: List[PasswordEntry], hide: bool = False, numbered: bool = False) -> str:
    headers = ['ID', 'Password', 'Generated at']
    rows = []
    for index, entry in enumerate(entries, 1):
        row = [entry.id, mask(entry.value) if hide else entry.value, format_created(entry)]
        if numbered:
            row.insert(0, str(index))
        rows.append(row)
    if numbered:
        headers.insert(0, '#')
    return tabulate(rows, headers=headers, tablefmt='simple_grid')


def resolve_entry_id(pm: PasswordHistoryManager, ref: str) -> Optional[str]:
    """
    Find the entry a user meant.

    Accepts a full id or its random suffix (the part after the last '-')
    when that suffix is unique.
    """
    if pm.find(ref):
        return ref
    matches = [e.id for e in pm.history if e.id.rsplit('-', 1)[-1] == ref]
    if len(matches) == 1:
        return matches[0]
    return None


def fail(message: str) -> None:
    click.echo(click.style(f"❌ {message}", fg='red'), err=True)
    sys.exit(1)


@click.group()
@click.option('--home', type=click.Path(file_okay=False),
              help='Data directory (default: $KEYFORGE_HOME or ~/.keyforge)')
@click.option('--verbose', '-v', is_flag=True, help='Write debug logs to keyforge.log')
@click.version_option(version=VERSION, prog_name="KeyForge")
@click.pass_context
def cli(ctx, home, verbose):
    """KeyForge - Generate random passwords and keep a 30-day history

    Passwords are generated locally and the history never leaves your device.
    Entries older than 30 days are removed automatically.
    """
    ctx.ensure_object(dict)
    ctx.obj['home'] = get_home(home)
    setup_logging(ctx.obj['home'], verbose=verbose)
    logger.debug("Using data directory %s", ctx.obj['home'])


@cli.command()
@click.option('--length', '-l', default=16, type=int,
              help=f'Password length ({MIN_LENGTH}-{MAX_LENGTH})')
@click.option('--count', '-c', default=1, type=click.IntRange(min=1), help='Number of passwords to generate')
@click.option('--no-uppercase', is_flag=True, help='Exclude uppercase letters')
@click.option('--no-lowercase', is_flag=True, help='Exclude lowercase letters')
@click.option('--no-digits', is_flag=True, help='Exclude numbers')
@click.option('--no-symbols', is_flag=True, help='Exclude symbols')
@click.pass_context
def generate(ctx, length, count, no_uppercase, no_lowercase, no_digits, no_symbols):
    """Generate passwords and add them to the history"""
    pm = get_password_manager(ctx)
    pm.options = GenerationOptions(
        use_uppercase=not no_uppercase,
        use_lowercase=not no_lowercase,
        use_digits=not no_digits,
        use_symbols=not no_symbols,
        length=length,
    )

    if pm.options.length != length:
        click.echo(f"⚠️  Length clamped to {pm.options.length}", err=True)

    try:
        for i in range(count):
            entry = pm.generate()
            if count == 1:
                click.echo(click.style(entry.value, fg='green', bold=True))
            else:
                click.echo(f"{i + 1}. {click.style(entry.value, fg='green', bold=True)}")
    except ValidationError as e:
        fail(str(e))
    except StorageError as e:
        fail(f"Could not save history: {e}")


@cli.command()
@click.option('--hide', is_flag=True, help='Mask password values')
@click.pass_context
def history(ctx, hide):
    """Show passwords generated in the last 30 days, newest first"""
    pm = get_password_manager(ctx)

    if not pm.history:
        click.echo("No passwords generated yet.")
        return

    click.echo(history_table(pm.history, hide=hide))
    click.echo(f"\n📊 Total: {len(pm.history)} password(s)")


@cli.command()
@click.argument('entry_id')
@click.pass_context
def delete(ctx, entry_id):
    """Delete one password from the history

    ENTRY_ID is the full id shown by 'keyforge history' or its last
    six characters.
    """
    pm = get_password_manager(ctx)

    resolved = resolve_entry_id(pm, entry_id)
    if resolved is None:
        click.echo(f"No history entry matches '{entry_id}'")
        return

    try:
        pm.delete(resolved)
    except StorageError as e:
        fail(f"Could not save history: {e}")
    click.echo(f"✅ Deleted {resolved}")


@cli.command()
@click.pass_context
def interactive(ctx):
    """Interactive generator with live history"""
    pm = get_password_manager(ctx)

    try:
        main_menu_loop(pm)
    except KeyboardInterrupt:
        click.echo("\n    👋 Goodbye!")


def render(pm: PasswordHistoryManager) -> None:
    """Draw the whole screen from the manager's state"""
    click.clear()
    display_header("KeyForge │ Password Generator")

    for number, (name, label) in enumerate(CLASS_LABELS, 1):
        enabled = getattr(pm.options, f"use_{name}")
        mark = click.style('[x]', fg='green') if enabled else '[ ]'
        click.echo(f"    {number}. {mark} {label}")
    click.echo(f"    l. Length: {pm.options.length}")
    click.echo()
    click.echo("    g. Generate password    d. Delete from history    q. Quit")

    if pm.error:
        click.echo(f"\n    {click.style('⚠️  ' + pm.error, fg='yellow')}")
    if pm.current_password:
        click.echo(f"\n    Last generated: {click.style(pm.current_password, fg='green', bold=True)}")

    click.echo("\n    History (last 30 days)")
    click.echo("    " + "─" * 55)
    if not pm.history:
        click.echo("    No passwords generated yet.")
    else:
        for line in history_table(pm.history, numbered=True).splitlines():
            click.echo(f"    {line}")
    click.echo()


def main_menu_loop(pm: PasswordHistoryManager) -> None:
    """Re-render after every action until the user quits"""
    toggles = {str(number): name for number, (name, _) in enumerate(CLASS_LABELS, 1)}

    while True:
        render(pm)
        choice = click.prompt("    Select option", type=str, default="", show_default=False).strip().lower()
        pm.error = None

        if choice in ("q", "0"):
            click.echo("    👋 Goodbye!")
            break

        elif choice in toggles:
            pm.toggle(toggles[choice])

        elif choice == "l":
            length = click.prompt(f"    Length ({MIN_LENGTH}-{MAX_LENGTH})", type=int,
                                  default=pm.options.length)
            pm.set_length(length)

        elif choice == "g":
            try:
                pm.generate()
            except ValidationError as e:
                pm.error = str(e)
            except StorageError as e:
                pm.error = f"Could not save history: {e}"

        elif choice == "d":
            delete_from_menu(pm)

        elif choice:
            pm.error = "Invalid option. Please try again."


def delete_from_menu(pm: PasswordHistoryManager) -> None:
    if not pm.history:
        pm.error = "History is empty."
        return

    row = click.prompt("    Row number to delete", type=click.IntRange(1, len(pm.history)))
    entry = pm.history[row - 1]
    try:
        pm.delete(entry.id)
    except StorageError as e:
        pm.error = f"Could not save history: {e}"


def display_header(title, width=60):
    """Display a boxed header"""
    click.echo("\n    ┌" + "─" * (width - 2) + "┐")
    click.echo(f"    │ {title:<{width - 4}} │")
    click.echo("    └" + "─" * (width - 2) + "┘")
    click.echo()


def main():
    cli(obj={})


# Entry point
if __name__ == '__main__':
    main()
