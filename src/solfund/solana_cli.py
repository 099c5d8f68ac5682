#!/usr/bin/env python3
"""
Solana Funding CLI

A command-line front end for the funding and transfer pipeline. It reads its
keypair and cluster settings from the environment (or `.env`) and prints
human-readable progress.

Usage:
    solfund keygen                           # Generate a new keypair
    solfund address                          # Address of SECRET_KEY
    solfund balance [address]                # Check balance
    solfund airdrop                          # Airdrop if the balance is low
    solfund send <recipient> <amount>        # Fund if needed, transfer + memo
"""

import argparse
import sys
from typing import List, Optional

from .config import EnvSecretProvider, SecretProvider, Settings, load_identity
from .core.accounts import lamports_to_sol, parse_address, sol_to_lamports
from .core.keypairs import generate_keypair
from .core.funding import ensure_funded, needs_funding
from .exceptions import SolfundError
from .networking.ledger import LedgerService
from .networking.rpc import SolanaRPC
from .pipeline import DEFAULT_MEMO, memo_operation, run_pipeline, transfer_operation


class SolanaCLI:
    """
    Command implementations.

    The ledger and secret source are injected so the commands can run
    against any LedgerService.
    """

    def __init__(self, settings: Settings, ledger: Optional[LedgerService] = None,
                 secrets: Optional[SecretProvider] = None):
        self.settings = settings
        self._ledger = ledger
        self.secrets = secrets or EnvSecretProvider(settings)

    @property
    def ledger(self) -> LedgerService:
        if self._ledger is None:
            self._ledger = SolanaRPC.from_settings(self.settings)
            print(f"⚡️ Connected to {self.settings.rpc_url}")
        return self._ledger

    def keygen(self):
        """Generate a fresh keypair and print it."""
        keypair = generate_keypair()
        print("✅ Generated keypair!")
        print(f"Public Key: {keypair.address}")
        print(f"SECRET_KEY={keypair.to_json()}")

    def address(self):
        keypair = load_identity(self.secrets)
        print("✅ Loaded keypair!")
        print(f"Public Key: {keypair.address}")

    def balance(self, address: Optional[str] = None):
        """Show the balance of an address, defaulting to the loaded keypair."""
        if address is None:
            address = load_identity(self.secrets).address
        else:
            parse_address(address)

        lamports = self.ledger.get_balance(address)
        print(f"💰 The balance for the wallet at address {address} is: "
              f"{lamports_to_sol(lamports)} SOL ({lamports:,} lamports)")

    def airdrop(self, threshold: Optional[int] = None, amount: Optional[int] = None):
        """Airdrop to the loaded keypair if its balance is below the threshold."""
        keypair = load_identity(self.secrets)
        threshold = self.settings.funding_threshold if threshold is None else threshold
        amount = self.settings.funding_amount if amount is None else amount

        balance = ensure_funded(
            keypair, self.ledger, threshold=threshold, amount=amount,
            timeout=self.settings.confirm_timeout,
        )
        if needs_funding(balance, threshold):
            print(f"🔄 Balance was low ({lamports_to_sol(balance):.2f} SOL). "
                  f"Airdropped {lamports_to_sol(amount)} SOL")
            print("✅ Airdrop successful!")
            balance = self.ledger.get_balance(keypair.address)
        else:
            print(f"💰 Sufficient balance ({lamports_to_sol(balance):.2f} SOL). No airdrop required.")
        print(f"Balance: {lamports_to_sol(balance)} SOL")

    def send(self, recipient: str, amount: str, memo: Optional[str] = DEFAULT_MEMO,
             fund: bool = True):
        """Fund if needed, then transfer `amount` SOL plus an optional memo."""
        keypair = load_identity(self.secrets)
        parse_address(recipient)
        lamports = sol_to_lamports(amount)

        operations = [transfer_operation(recipient, lamports)]
        if memo:
            operations.append(memo_operation(memo))

        print(f"💸 Transferring {amount} SOL from {keypair.address} to {recipient}")
        result = run_pipeline(
            keypair, self.ledger, operations,
            # threshold 0 never triggers an airdrop
            threshold=self.settings.funding_threshold if fund else 0,
            amount=self.settings.funding_amount,
            timeout=self.settings.confirm_timeout,
        )
        if fund and needs_funding(result.balance_before, self.settings.funding_threshold):
            print("✅ Airdrop successful!")
        print(f"✅ Transaction confirmed: {result.signature}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="solfund",
        description="Fund a Solana account from the faucet and send transactions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  solfund keygen                          # New keypair, prints SECRET_KEY
  solfund balance                         # Balance of SECRET_KEY's account
  solfund airdrop                         # Airdrop 1 SOL if the account is empty
  solfund send <address> 0.01             # Transfer 0.01 SOL with a memo
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    subparsers.add_parser('keygen', help='Generate a new keypair')
    subparsers.add_parser('address', help='Show the address of SECRET_KEY')

    balance_parser = subparsers.add_parser('balance', help='Check account balance')
    balance_parser.add_argument('address', nargs='?', help='Address (defaults to SECRET_KEY)')

    airdrop_parser = subparsers.add_parser('airdrop', help='Airdrop if the balance is low')
    airdrop_parser.add_argument('--threshold', type=int, help='Threshold in lamports')
    airdrop_parser.add_argument('--amount', type=int, help='Airdrop amount in lamports')

    send_parser = subparsers.add_parser('send', help='Transfer SOL with a memo')
    send_parser.add_argument('recipient', help='Destination address')
    send_parser.add_argument('amount', help='Amount in SOL')
    send_parser.add_argument('--memo', default=DEFAULT_MEMO, help='Memo text ("" for none)')
    send_parser.add_argument('--no-fund', action='store_true', help='Skip the airdrop check')

    return parser


def main(argv: Optional[List[str]] = None, cli: Optional[SolanaCLI] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    cli = cli or SolanaCLI(Settings())

    try:
        if args.command == 'keygen':
            cli.keygen()

        elif args.command == 'address':
            cli.address()

        elif args.command == 'balance':
            cli.balance(args.address)

        elif args.command == 'airdrop':
            cli.airdrop(args.threshold, args.amount)

        elif args.command == 'send':
            cli.send(args.recipient, args.amount, args.memo, fund=not args.no_fund)

    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
        return 130

    except (SolfundError, ValueError) as e:
        print(f"❌ Error: {e}")
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
