#!/usr/bin/env python3
"""
Example of donating to a crowdfunding campaign on testnet.
"""
import os

from crowdfund_sdk import CrowdfundClient, CrowdfundError, LocalSigner, NetworkConfig


def main():
    """
    Demonstrate a donation from start to finish.

    This example shows how to:
    1. Initialize the client from a network configuration
    2. Fund a fresh donor account with Friendbot
    3. Read the campaign state
    4. Donate and report the outcome
    """
    SECRET = os.environ.get("DONOR_SECRET")
    AMOUNT = int(os.environ.get("DONATION_AMOUNT", "10000000"))  # 1 token at 7 decimals

    print("Available networks:")
    for network_name in NetworkConfig.load_networks().keys():
        print(f"  - {network_name}")
    print()

    signer = LocalSigner(SECRET) if SECRET else LocalSigner.random()
    print(f"Donor account: {signer.public_key}")

    client = CrowdfundClient.from_network(signer=signer)

    if not SECRET:
        print("No DONOR_SECRET set, funding a fresh account with Friendbot...")
        client.fund_with_friendbot(signer.public_key)

    try:
        campaign = client.fetch_campaign()
        print(f"Raised {campaign.total_raised} of {campaign.goal} ({campaign.progress_percent}%)")
        if campaign.is_expired():
            print("Campaign has ended, nothing to do")
            return

        outcome = client.submit_donation(signer.public_key, AMOUNT)
        print(f"Donation sent: {client.tx_url(outcome.tx_hash)}")
        if outcome.warning:
            print(f"Warning: {outcome.warning.message}")

        total = client.fetch_donation_total(signer.public_key)
        print(f"Total donated by this account: {total}")

    except CrowdfundError as e:
        print(f"Donation failed [{e.kind.value}]: {e.message}")


if __name__ == "__main__":
    main()
