#!/usr/bin/env python3
"""
Example of following donation events as they land on-chain.
"""
import logging
import time

from crowdfund_sdk import CrowdfundClient, DonationEvent


def on_donation(event: DonationEvent):
    print(f"{event.donor} donated {event.amount} (event {event.tx_hash})")


def main():
    logging.basicConfig(level=logging.INFO)

    client = CrowdfundClient.from_network()
    client.start_listening(on_donation)
    print("Listening for donations, press Ctrl+C to stop")

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        client.stop_listening()

    print(f"Saw {len(client.events)} donations this session")


if __name__ == "__main__":
    main()
