"""
sealbid CLI - Command Line Interface for sealed-bid timelock auctions

Main entry point for all CLI commands.
"""

import secrets

import click

from sealbid.utils.logger import configure_from_config, get_logger, log_file_path


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--env-file", default=None, help="Load SEALBID_* settings from this .env file")
@click.version_option(version="0.1.0")
@click.pass_context
def cli(ctx, debug, env_file):
    """Sealed-bid timelock auctions - second-price, commit/reveal"""
    from sealbid.core.config import load_config

    config = load_config(env_file)
    configure_from_config(config, debug=debug)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


# =============================================================================
# Commitment Commands
# =============================================================================


@cli.command("commit")
@click.argument("value", type=int)
def commit_cmd(value):
    """Print the commitment digest for a bid VALUE"""
    from sealbid.core.auction import commit
    from sealbid.crypto import bytes_to_hex

    try:
        digest = commit(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="VALUE")
    click.echo(bytes_to_hex(digest))


@cli.command("verify")
@click.argument("value", type=int)
@click.argument("digest")
def verify_cmd(value, digest):
    """Check that VALUE opens the commitment DIGEST"""
    from sealbid.core.auction import verify
    from sealbid.crypto import hex_to_bytes

    try:
        digest_bytes = hex_to_bytes(digest)
    except ValueError:
        raise click.BadParameter("not a hex string", param_hint="DIGEST")

    if verify(value, digest_bytes):
        click.echo("✓ Commitment matches")
    else:
        click.echo("✗ Commitment does not match")
        raise SystemExit(1)


@cli.command("keygen")
def keygen():
    """Generate a bidder keypair"""
    from sealbid.crypto import generate_keypair, bytes_to_hex

    kp = generate_keypair()
    click.echo(f"Address:     {kp.address_hex}")
    click.echo(f"Public key:  {bytes_to_hex(kp.public_key)}")
    click.echo(f"Private key: {bytes_to_hex(kp.private_key)}")


@cli.command("config")
@click.pass_context
def show_config(ctx):
    """Show the effective configuration"""
    config = ctx.obj["config"]
    click.echo(f"  minimum_deposit:  {config.minimum_deposit}")
    click.echo(f"  max_participants: {config.max_participants}")
    click.echo(f"  max_blob_size:    {config.max_blob_size}")
    click.echo(f"  log_level:        {config.log_level}")
    click.echo(f"  log_to_file:      {config.log_to_file}")
    click.echo(f"  log_dir:          {config.log_dir}")
    click.echo(f"  log_file:         {log_file_path() or '-'}")


# =============================================================================
# Demo Command
# =============================================================================


@cli.command("demo")
@click.option("--bids", default="120,300,250", help="Comma-separated bid values, one per bidder")
@click.option("--deadline", default=10, type=click.IntRange(min=1), help="Reveal slot")
@click.option("--tamper", default=None, type=int, help="Index of a bidder who reveals a wrong value")
@click.pass_context
def demo(ctx, bids, deadline, tamper):
    """Run a complete auction with in-memory collaborators"""
    from sealbid.core.auction import AesSlotClient, collect_revealed_bids, commit
    from sealbid.core.auction.proposal import Proposal
    from sealbid.core.collaborators import AssetRegistry, BalanceBook, SlotClock
    from sealbid.core.registry import AuctionHouse
    from sealbid.crypto import generate_keypair, short_hex
    from sealbid.utils.validation import validate_bid_value

    logger = get_logger("cli")
    config = ctx.obj["config"]

    try:
        values = [int(v) for v in bids.split(",") if v.strip()]
    except ValueError:
        raise click.BadParameter("bids must be integers", param_hint="--bids")
    if not values:
        raise click.BadParameter("at least one bid is required", param_hint="--bids")
    for value in values:
        valid, err = validate_bid_value(value)
        if not valid:
            raise click.BadParameter(err, param_hint="--bids")
    if tamper is not None and not 0 <= tamper < len(values):
        raise click.BadParameter("no bidder with that index", param_hint="--tamper")

    click.echo("=" * 60)
    click.echo("  SEALED-BID TIMELOCK AUCTION - DEMO")
    click.echo("=" * 60)
    click.echo()

    clock = SlotClock(current_slot=0)
    assets = AssetRegistry()
    balances = BalanceBook()
    house = AuctionHouse(clock, assets, balances, config)
    client = AesSlotClient()
    slot_secret = secrets.token_bytes(32)

    seller = generate_keypair()
    bidders = [generate_keypair() for _ in values]
    funding = max(values) + config.minimum_deposit
    for kp in bidders:
        balances.credit(kp.address, funding)

    auction_id, err = house.new_auction(seller.address, b"demo lot", deadline=deadline)
    if auction_id is None:
        raise click.ClickException(f"Could not create auction: {err.name}")
    auction = house.get_auction(auction_id)
    click.echo(f"🏛️  Auction {short_hex(auction_id, 16)} for asset {short_hex(auction.asset_reference, 16)}")
    click.echo(f"  deposit={auction.minimum_deposit}, reveal at slot {deadline}")
    click.echo()

    click.echo("🔒 Sealing bids...")
    for kp, value in zip(bidders, values):
        ciphertext, nonce, capsule = client.seal(value, deadline, slot_secret)
        proposal = Proposal(
            bidder=kp.address,
            deposit=auction.minimum_deposit,
            ciphertext=ciphertext,
            nonce=nonce,
            capsule=capsule,
            commitment=commit(value),
        )
        proposal.sign(kp.private_key, auction_id)
        ok, err = house.bid(
            auction_id, kp.address, ciphertext, nonce, capsule, proposal.commitment,
            auction.minimum_deposit, signature=proposal.signature, public_key=kp.public_key,
        )
        status = "✓" if ok else f"✗ {err.name}"
        click.echo(f"  {status} {kp.address_hex[:12]}... sealed a bid")
        # bidding stays open until the reveal slot
        if clock.current_slot + 1 < deadline:
            clock.advance()
    click.echo()

    clock.set_slot(max(clock.current_slot, deadline))
    click.echo(f"⏰ Slot {clock.current_slot} reached, slot secret released")

    if tamper is not None:
        revealed = collect_revealed_bids(auction, client, {deadline: slot_secret})
        target = bidders[tamper]
        if target.address in revealed:
            revealed[target.address] ^= 1
            click.echo(f"  {target.address_hex[:12]}... reveals a value it never committed to")
        else:
            click.echo(f"  {target.address_hex[:12]}... has no bid to tamper with")
        ok, err = house.resolve(auction_id, revealed)
    else:
        ok, err = house.reveal_and_resolve(auction_id, client, {deadline: slot_secret})
    if not ok:
        raise click.ClickException(f"Resolution failed: {err.name}")

    for kp in bidders:
        revealed_value = auction.get_revealed_bid(kp.address)
        if auction.get_proposal(kp.address) is None and auction.get_failed_proposal(kp.address) is None:
            click.echo(f"  - {kp.address_hex[:12]}... has no bid on record")
        elif revealed_value is None:
            click.echo(f"  ✗ {kp.address_hex[:12]}... reveal rejected")
        else:
            click.echo(f"  ✓ {kp.address_hex[:12]}... revealed {revealed_value}")
    click.echo()

    result, err = house.get_winner(auction_id)
    if result is None:
        click.echo("⚖️  No valid reveals, nobody wins")
    else:
        winner = next(kp for kp in bidders if kp.address == result.winner)
        click.echo(f"⚖️  Winner {winner.address_hex[:12]}... pays {result.debt}")

    click.echo()
    click.echo("💸 Claims...")
    for kp in bidders:
        amount = result.debt if result is not None and kp.address == result.winner else 0
        ok, err = house.claim(auction_id, kp.address, amount)
        status = "✓" if ok else f"✗ {err.name}"
        click.echo(f"  {status} {kp.address_hex[:12]}... balance {balances.balance_of(kp.address)}")

    paid, err = house.withdraw_proceeds(auction_id, seller.address)
    click.echo(f"  Seller withdrew {paid}")
    if result is not None:
        owner = assets.owner_of(auction.asset_reference)
        click.echo(f"  Asset now owned by {'winner' if owner == result.winner else short_hex(owner)}")
    click.echo()

    logger.debug(f"Demo stats: {house.stats()}")
    click.echo(f"📊 {auction.stats()}")
    click.echo("✅ Demo complete!")


if __name__ == "__main__":
    cli()
