"""
sealbid CLI - Command Line Interface for sealed-bid auctions

Main entry point for all CLI commands.
"""

import functools
import json
import logging
from pathlib import Path

import click

from sealbid import __version__
from sealbid.core.errors import AuctionError
from sealbid.utils.logger import setup_logging


class UintParamType(click.ParamType):
    """Unsigned integer, decimal or 0x-prefixed hex."""

    name = "uint"

    def convert(self, value, param, ctx):
        if isinstance(value, int):
            return value
        try:
            number = int(value, 0)
        except ValueError:
            self.fail(f"{value!r} is not an integer", param, ctx)
        if number < 0:
            self.fail(f"{value!r} is negative", param, ctx)
        return number


UINT = UintParamType()


def handle_errors(func):
    """Report auction errors as `❌ Kind: message` and exit with status 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except AuctionError as e:
            click.echo(f"❌ {e.kind}: {e.message}", err=True)
            raise SystemExit(1)
        except ValueError as e:
            click.echo(f"❌ Invalid input: {e}", err=True)
            raise SystemExit(1)

    return wrapper


def open_deployment(ctx):
    """Build the persistent house, registry and ledger for this data dir."""
    from sealbid.core.auction import AuctionHouse
    from sealbid.core.registry import AssetRegistry
    from sealbid.core.state import BalanceLedger, LedgerPayoutRail
    from sealbid.core.storage import StorageManager

    if "house" in ctx.obj:
        return ctx.obj["house"]

    config = ctx.obj["config"]
    storage = StorageManager(config.data_dir, db_name=config.db_name)
    registry = AssetRegistry(storage_manager=storage)
    ledger = BalanceLedger(storage_manager=storage)
    house = AuctionHouse(
        asset_registry=registry,
        payout_rail=LedgerPayoutRail(ledger),
        operator=config.operator,
        fee_amount=config.fee_amount,
        storage_manager=storage,
    )

    ctx.obj.update(storage=storage, registry=registry, ledger=ledger, house=house)
    ctx.call_on_close(storage.close)
    return house


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--data-dir", default=None, help="Data directory (overrides config)")
@click.option("--config", "config_path", default=None, type=click.Path(exists=True), help="JSON config file")
@click.version_option(version=__version__)
@click.pass_context
def cli(ctx, debug, data_dir, config_path):
    """Sealed-bid commit/reveal auctions"""
    from sealbid.core.config import load_config

    config = load_config(config_path)
    if data_dir:
        config = config.model_copy(update={"data_dir": Path(data_dir).expanduser()})

    level = logging.DEBUG if debug else config.log_level
    setup_logging(level=level, log_dir=str(config.log_dir), log_to_file=config.log_to_file)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    config.data_dir.mkdir(parents=True, exist_ok=True)


# =============================================================================
# Identity Commands
# =============================================================================

@cli.group()
def identity():
    """Participant identity commands"""
    pass


@identity.command("new")
def identity_new():
    """Generate a new keypair and print its address"""
    from sealbid.crypto import generate_keypair

    kp = generate_keypair()
    click.echo(f"Address:     {kp.address}")
    click.echo(f"Private key: {kp.private_key_hex}")
    click.echo("  ⚠️  Store the private key safely - it is not saved anywhere!")


@cli.command("commitment")
@click.option("--value", required=True, type=UINT, help="Bid value")
@click.option("--nonce", default=None, type=UINT, help="Secret nonce (random if omitted)")
@click.option("--bidder", required=True, help="Bidder address (0x...)")
@handle_errors
def commitment(value, nonce, bidder):
    """Compute the commitment hash for a sealed bid"""
    from sealbid.core.auction import create_commitment
    from sealbid.crypto import bytes_to_hex, generate_nonce

    if nonce is None:
        nonce = generate_nonce()

    digest = create_commitment(value, nonce, bidder)
    click.echo(f"Commitment: {bytes_to_hex(digest)}")
    click.echo(f"Nonce:      {nonce}")
    click.echo("  Keep the value and nonce - both are needed to reveal.")


# =============================================================================
# Auction Commands
# =============================================================================

@cli.group()
def auction():
    """Auction lifecycle commands"""
    pass


@auction.command("create")
@click.option("--duration", default=None, type=UINT, help="Commit phase length in seconds")
@click.option("--fee", default=None, type=UINT, help="Fee per bid (smallest unit)")
@click.option("--operator", default=None, help="Operator address (defaults to config)")
@click.pass_context
@handle_errors
def auction_create(ctx, duration, fee, operator):
    """Create a new auction"""
    house = open_deployment(ctx)
    config = ctx.obj["config"]

    auction_id = house.create_auction(
        duration=duration if duration is not None else config.default_duration,
        fee_amount=fee,
        operator=operator,
    )
    created = house.get(auction_id)

    click.echo(f"✓ Auction {auction_id} created")
    click.echo(f"  Deadline: {created.deadline}")
    click.echo(f"  Fee:      {created.fee_amount}")
    click.echo(f"  Operator: {created.operator}")


@auction.command("list")
@click.pass_context
def auction_list(ctx):
    """List all auctions"""
    house = open_deployment(ctx)
    now = house.clock.now()

    auctions = house.list_auctions()
    if not auctions:
        click.echo("No auctions found.")
        return

    for a in auctions:
        click.echo(f"  #{a.auction_id}: {a.phase(now).name} bids={a.bid_count} "
                   f"escrow={a.escrow.balance}")


@auction.command("status")
@click.argument("auction_id", type=int)
@click.pass_context
@handle_errors
def auction_status(ctx, auction_id):
    """Show whether an auction accepts bids"""
    house = open_deployment(ctx)
    status = house.get_status(auction_id)

    click.echo(f"Auction {auction_id}")
    click.echo(f"  Active:         {status.is_active}")
    click.echo(f"  Time remaining: {status.time_remaining}s")


@auction.command("show")
@click.argument("auction_id", type=int)
@click.pass_context
@handle_errors
def auction_show(ctx, auction_id):
    """Show full auction state and its event log"""
    house = open_deployment(ctx)
    a = house.get(auction_id)

    record = a.to_record()
    record["phase"] = a.phase(house.clock.now()).name
    record["events"] = ctx.obj["storage"].load_events(auction_id)
    click.echo(json.dumps(record, indent=2))


@auction.command("finalize")
@click.argument("auction_id", type=int)
@click.option("--caller", required=True, help="Operator address")
@click.option("--metadata", required=True, help="Metadata for the winner's asset")
@click.pass_context
@handle_errors
def auction_finalize(ctx, auction_id, caller, metadata):
    """Finalize an auction after its deadline"""
    house = open_deployment(ctx)
    result = house.finalize_auction(auction_id, metadata, caller)

    click.echo(f"✓ Auction {auction_id} finalized")
    if result.winner:
        click.echo(f"  Winner:  {result.winner} ({result.highest_value})")
        click.echo(f"  Asset:   #{result.asset_id}")
    else:
        click.echo("  No bid was revealed - nothing minted")
    click.echo(f"  Withdrawn: {result.amount_withdrawn}")


@auction.command("withdraw")
@click.argument("auction_id", type=int)
@click.option("--caller", required=True, help="Operator address")
@click.pass_context
@handle_errors
def auction_withdraw(ctx, auction_id, caller):
    """Retry the payout of escrowed fees"""
    house = open_deployment(ctx)
    amount = house.withdraw_funds(auction_id, caller)
    click.echo(f"✓ Withdrawn: {amount}")


# =============================================================================
# Bid Commands
# =============================================================================

@cli.group()
def bid():
    """Bidding commands"""
    pass


@bid.command("place")
@click.argument("auction_id", type=int)
@click.option("--caller", required=True, help="Bidder address")
@click.option("--hash", "commitment_hex", required=True, help="Commitment hash (0x...)")
@click.option("--payment", required=True, type=UINT, help="Fee attached to the bid")
@click.pass_context
@handle_errors
def bid_place(ctx, auction_id, caller, commitment_hex, payment):
    """Submit a sealed bid"""
    from sealbid.crypto import hex_to_bytes

    house = open_deployment(ctx)
    house.place_bid(auction_id, hex_to_bytes(commitment_hex), payment, caller)
    click.echo(f"✓ Bid placed in auction {auction_id}")


@bid.command("reveal")
@click.argument("auction_id", type=int)
@click.option("--caller", required=True, help="Bidder address")
@click.option("--value", required=True, type=UINT, help="Committed bid value")
@click.option("--nonce", required=True, type=UINT, help="Committed nonce")
@click.pass_context
@handle_errors
def bid_reveal(ctx, auction_id, caller, value, nonce):
    """Reveal a sealed bid"""
    house = open_deployment(ctx)
    leading = house.reveal_bid(auction_id, value, nonce, caller)
    click.echo(f"✓ Bid revealed: {value}")
    click.echo(f"  Leading: {'yes' if leading else 'no'}")


# =============================================================================
# Asset & Balance Commands
# =============================================================================

@cli.group()
def asset():
    """Minted asset commands"""
    pass


@asset.command("show")
@click.argument("asset_id", type=int)
@click.pass_context
@handle_errors
def asset_show(ctx, asset_id):
    """Show a minted asset"""
    open_deployment(ctx)
    registry = ctx.obj["registry"]

    click.echo(f"Asset #{asset_id}")
    click.echo(f"  Owner:    {registry.owner_of(asset_id)}")
    click.echo(f"  Metadata: {registry.metadata_of(asset_id)}")


@cli.command("balance")
@click.argument("address")
@click.pass_context
@handle_errors
def balance(ctx, address):
    """Show funds paid out to an address"""
    open_deployment(ctx)
    click.echo(f"Address: {address}")
    click.echo(f"Balance: {ctx.obj['ledger'].get_balance(address)}")


# =============================================================================
# Demo Command
# =============================================================================


@cli.command("demo")
@click.option("--duration", default=3600, type=UINT, help="Commit phase length in seconds")
@click.option("--fee", default=10**16, type=UINT, help="Fee per bid")
def demo(duration, fee):
    """Run a complete auction in memory with a simulated clock"""
    from sealbid.core.auction import AuctionHouse, create_commitment
    from sealbid.core.clock import ManualClock
    from sealbid.core.errors import AuctionError
    from sealbid.core.registry import AssetRegistry
    from sealbid.core.state import BalanceLedger, LedgerPayoutRail
    from sealbid.crypto import generate_keypair

    click.echo("=" * 60)
    click.echo("  SEALED-BID AUCTION - DEMO")
    click.echo("=" * 60)
    click.echo()

    operator = generate_keypair().address
    alice = generate_keypair().address
    bob = generate_keypair().address

    clock = ManualClock(start=1_700_000_000)
    registry = AssetRegistry()
    ledger = BalanceLedger()
    house = AuctionHouse(
        asset_registry=registry,
        payout_rail=LedgerPayoutRail(ledger),
        operator=operator,
        clock=clock,
        fee_amount=fee,
    )
    house.event_bus.subscribe(lambda e: click.echo(f"  📣 {e.name}: {e.to_dict()}"))

    auction_id = house.create_auction(duration)
    click.echo(f"🏛️  Auction {auction_id} open for {duration}s (fee {fee})")
    click.echo()

    click.echo("🔒 Committing sealed bids...")
    house.place_bid(auction_id, create_commitment(30, 7, alice), fee, alice)
    house.place_bid(auction_id, create_commitment(50, 9, bob), fee, bob)
    click.echo(f"  ✓ Escrow: {house.get(auction_id).escrow.balance}")
    click.echo()

    clock.advance(duration)
    click.echo("🔓 Deadline passed, revealing...")
    house.reveal_bid(auction_id, 30, 7, alice)
    click.echo(f"  ✓ Alice revealed 30, leader: {house.get(auction_id).winner}")
    house.reveal_bid(auction_id, 50, 9, bob)
    click.echo(f"  ✓ Bob revealed 50, leader: {house.get(auction_id).winner}")
    click.echo()

    click.echo("⚖️  Finalizing...")
    result = house.finalize_auction(auction_id, "ipfs://demo-asset", operator)
    click.echo(f"  ✓ Asset #{result.asset_id} owned by {registry.owner_of(result.asset_id)}")
    click.echo(f"  ✓ Operator balance: {ledger.get_balance(operator)}")
    click.echo()

    click.echo("🚫 Late calls are rejected:")
    for label, call in (
        ("bid", lambda: house.place_bid(auction_id, create_commitment(99, 1, alice), fee, alice)),
        ("reveal", lambda: house.reveal_bid(auction_id, 30, 7, alice)),
        ("finalize", lambda: house.finalize_auction(auction_id, "ipfs://again", operator)),
    ):
        try:
            call()
        except AuctionError as e:
            click.echo(f"  ✓ {label}: {e.kind} ({e.message})")
    click.echo()
    click.echo("✅ Demo complete!")


if __name__ == "__main__":
    cli()
