#!/usr/bin/env python
"""Command-line interface for StarLedger."""

import argparse
import json
import logging
import sys
from pathlib import Path

from starledger import Ledger, StarRegistry, StarLedgerError, __version__
from starledger.core.registry import DEFAULT_TAG
from starledger.crypto.signatures import create_verifier, create_wallet


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="StarLedger - hash-linked star registry",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"StarLedger {__version__}",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    keygen_parser = subparsers.add_parser("keygen", help="Generate a wallet key pair")
    keygen_parser.add_argument("-s", "--scheme", default="ed25519", choices=["ed25519", "ecdsa"])

    challenge_parser = subparsers.add_parser("challenge", help="Issue an ownership challenge")
    challenge_parser.add_argument("address", help="Wallet address")
    challenge_parser.add_argument("-t", "--tag", default=DEFAULT_TAG, help="Protocol tag")

    sign_parser = subparsers.add_parser("sign", help="Sign a challenge message")
    sign_parser.add_argument("message", help="Message to sign")
    sign_parser.add_argument("-k", "--key", required=True, help="Private key PEM file")
    sign_parser.add_argument("-s", "--scheme", default="ed25519", choices=["ed25519", "ecdsa"])

    demo_parser = subparsers.add_parser("demo", help="Run interactive demo")
    demo_parser.add_argument("-s", "--scheme", default="ed25519", choices=["ed25519", "ecdsa"])
    demo_parser.add_argument("--json", action="store_true", help="Print the chain as JSON")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.command == "keygen":
            wallet = create_wallet(args.scheme)
            print(f"Address: {wallet.address}")
            print(wallet.get_private_key_pem(), end="")

        elif args.command == "challenge":
            registry = StarRegistry(Ledger(), tag=args.tag)
            print(registry.request_message_ownership_verification(args.address))

        elif args.command == "sign":
            pem = Path(args.key).read_text()
            wallet = create_wallet(args.scheme, private_key=pem)
            print(wallet.sign_message(args.message))

        elif args.command == "demo":
            return _run_demo(args.scheme, args.json)

    except (StarLedgerError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


def _run_demo(scheme: str, as_json: bool) -> int:
    print("StarLedger Interactive Demo")
    print("=" * 50)

    registry = StarRegistry(Ledger(), verifier=create_verifier(scheme))
    wallet = create_wallet(scheme)
    print(f"\nWallet address: {wallet.address}")

    stars = [
        {"dec": "68° 52' 56.9", "ra": "16h 29m 1.0s", "story": "Found star using https://www.google.com/sky/"},
        {"dec": "-26° 29' 24.9", "ra": "16h 29m 1.0s", "story": "Antares"},
    ]

    print("\nRegistering stars...")
    for star in stars:
        message = registry.request_message_ownership_verification(wallet.address)
        signature = wallet.sign_message(message)
        block = registry.submit_star(wallet.address, message, signature, star)
        print(f"✓ Block {block.height}: {block.hash[:16]}...")

    ledger = registry.ledger
    if as_json:
        print(json.dumps([b.to_dict() for b in ledger.get_blocks()], indent=2))
    else:
        print("\nHash Chain:")
        for block in ledger.get_blocks():
            print(f"  Block {block.height}: {block.hash[:16]}...")
            if block.previous_block_hash:
                print(f"    └─> Previous: {block.previous_block_hash[:16]}...")

    print(f"\nStars owned by wallet: {len(registry.get_stars_by_wallet_address(wallet.address))}")

    print("\nValidating chain...")
    invalid = ledger.validate_chain()
    if invalid:
        print(f"✗ Invalid blocks: {[b.height for b in invalid]}")
        return 1
    print("✓ Chain is valid!")

    print("\nTampering with block 1...")
    ledger.tamper_with_block_by_height(1)
    invalid = ledger.validate_chain()
    print(f"✓ Tampering detected at heights {[b.height for b in invalid]}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
