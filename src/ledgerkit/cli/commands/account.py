"""Account management commands."""

from dataclasses import replace

import click
from ledgerkit.cli.account_resolution import resolve_account_or_exit
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.entities import AccountType
from ledgerkit.domain.errors import DomainError

ACCOUNT_TYPE_CHOICES = [t.value for t in AccountType if t is not AccountType.ROOT]
ROOT_REFERENCE = "ROOT"


@click.group()
def account_group():
    """Manage the chart of accounts."""
    pass


@account_group.command("create")
@click.argument("path", metavar="ACCOUNT_PATH")
@click.option(
    "--type",
    "account_type",
    type=click.Choice(ACCOUNT_TYPE_CHOICES, case_sensitive=False),
    default=AccountType.ASSET.value,
    show_default=True,
    help="Type of the new account(s)",
)
@click.option("--currency", help="Currency code (defaults to the book's default currency)")
@click.option("--placeholder", is_flag=True, help="Account only groups other accounts")
@click.option("--description", default="", help="Account description")
@click.pass_context
def create_account(
    ctx, path: str, account_type: str, currency: str | None, placeholder: bool, description: str
):
    """Create an account, and any missing parents along its path.

    Examples:
        ledgerkit account create "Assets:Bank:Checking" --type BANK
        ledgerkit account create "Expenses:Groceries" --type EXPENSE
        ledgerkit account create "Assets:Euro Savings" --type BANK --currency EUR
    """
    book = ctx.obj["book"]

    try:
        if book.accounts.find_by_full_name(path) is not None:
            click.echo(f"Error: Account '{path}' already exists", err=True)
            ctx.exit(1)
        commodity = book.commodities.require(currency) if currency else None
        account_uid = book.accounts.create_hierarchy(
            path, AccountType(account_type.upper()), commodity
        )
        account = book.accounts.get_account(account_uid)
        if placeholder or description:
            account = book.accounts.save_account(
                replace(account, placeholder=placeholder, description=description)
            )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created account '{account.full_name}' (UID: {account.uid})")
    click.echo(f"Type: {account.account_type.value}, currency: {account.commodity.mnemonic}")


@account_group.command("list")
@click.option("--all", "show_all", is_flag=True, help="Include hidden accounts")
@click.pass_context
def list_accounts(ctx, show_all: bool):
    """List accounts with their balances."""
    book = ctx.obj["book"]

    accounts = book.accounts.list_accounts(include_hidden=show_all)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 72)
    for acc in accounts:
        depth = acc.full_name.count(":")
        label = "  " * depth + acc.name
        flags = " [placeholder]" if acc.placeholder else ""
        balance = book.balances.balance(acc.uid)
        click.echo(f"{label:36s} {acc.account_type.value:10s} {str(balance):>20s}{flags}")


@account_group.command("rename")
@click.argument("account", metavar="ACCOUNT")
@click.argument("new_name", metavar="NEW_NAME")
@click.pass_context
def rename_account(ctx, account: str, new_name: str) -> None:
    """Rename an account; the full names of its subaccounts follow.

    ACCOUNT can be a full account name or UID.

    Examples:
        ledgerkit account rename "Expenses:Food" "Dining"
    """
    book = ctx.obj["book"]
    account_uid = resolve_account_or_exit(ctx, book.accounts, account)

    try:
        existing = book.accounts.get_account(account_uid)
        saved = book.accounts.save_account(replace(existing, name=new_name))
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Renamed account to '{saved.full_name}'")


@account_group.command("move")
@click.argument("account", metavar="ACCOUNT")
@click.argument("new_parent", metavar="NEW_PARENT")
@click.pass_context
def move_account(ctx, account: str, new_parent: str) -> None:
    """Move an account (with its subaccounts) under another parent.

    NEW_PARENT is a full account name, a UID, or ROOT for the top level.

    Examples:
        ledgerkit account move "Expenses:Coffee" "Expenses:Food"
        ledgerkit account move "Expenses:Food:Coffee" ROOT
    """
    book = ctx.obj["book"]
    account_uid = resolve_account_or_exit(ctx, book.accounts, account)
    if new_parent.strip().upper() == ROOT_REFERENCE:
        parent_uid = book.accounts.create_or_get_root().uid
    else:
        parent_uid = resolve_account_or_exit(ctx, book.accounts, new_parent)

    try:
        existing = book.accounts.get_account(account_uid)
        saved = book.accounts.save_account(replace(existing, parent_uid=parent_uid))
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Moved account to '{saved.full_name}'")


@account_group.command("reassign")
@click.argument("old_parent", metavar="OLD_PARENT")
@click.argument("new_parent", metavar="NEW_PARENT")
@click.pass_context
def reassign_children(ctx, old_parent: str, new_parent: str) -> None:
    """Move all subaccounts of OLD_PARENT under NEW_PARENT.

    Examples:
        ledgerkit account reassign "Expenses:Old" "Expenses:New"
    """
    book = ctx.obj["book"]
    old_uid = resolve_account_or_exit(ctx, book.accounts, old_parent)
    new_uid = resolve_account_or_exit(ctx, book.accounts, new_parent)

    try:
        count = book.accounts.reassign_descendants(old_uid, new_uid)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Moved {count} account{'s' if count != 1 else ''}")


@account_group.command("delete")
@click.argument("account", metavar="ACCOUNT")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_account(ctx, account: str, yes: bool) -> None:
    """Delete an account, its subaccounts and all their transactions.

    ACCOUNT can be a full account name or UID.

    Examples:
        ledgerkit account delete "Expenses:Old"
        ledgerkit account delete "Expenses:Old" --yes
    """
    book = ctx.obj["book"]
    account_uid = resolve_account_or_exit(ctx, book.accounts, account)
    account_obj = book.accounts.get_account(account_uid)

    descendants = book.accounts.descendants_of(account_uid)
    if not yes:
        message = f"Delete account '{account_obj.full_name}'"
        if descendants:
            message += f" and {len(descendants)} subaccount{'s' if len(descendants) != 1 else ''}"
        message += " together with every transaction that touches them?"
        if not click.confirm(message):
            click.echo("Deletion cancelled.")
            return

    try:
        deleted = book.accounts.recursive_delete(account_uid)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted account '{account_obj.full_name}' ({deleted} account{'s' if deleted != 1 else ''})")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
