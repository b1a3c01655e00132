#!/usr/bin/env python3
"""
Example of running a mission from identity registration to finalization.
"""
import logging
import os

from eth_account import Account

from dav_sdk import ArtifactTable, ContractType, DavClient, SDKConfig


def main():
    """
    Demonstrate the mission workflow against a local development chain.

    This example shows how to:
    1. Load contract artifacts from a Truffle build directory
    2. Register an identity
    3. Approve the mission contract and start a mission
    4. Finalize the mission and print the mission contract's events
    """
    logging.basicConfig(level=logging.INFO)

    # Read environment variables
    IDENTITY_KEY = os.environ.get("DAV_IDENTITY_KEY")
    WALLET_KEY = os.environ.get("DAV_WALLET_KEY")
    CONTRACTS_DIR = os.environ.get("DAV_CONTRACTS_DIR")
    VEHICLE_ID = os.environ.get("DAV_VEHICLE_ID")

    # Verify configuration
    if not (IDENTITY_KEY and WALLET_KEY and CONTRACTS_DIR and VEHICLE_ID):
        print("ERROR: DAV_IDENTITY_KEY, DAV_WALLET_KEY, DAV_CONTRACTS_DIR and DAV_VEHICLE_ID are required")
        return

    config = SDKConfig(
        eth_node_url=os.environ.get("DAV_ETH_NODE_URL", "http://localhost:8545"),
        blockchain_type=os.environ.get("DAV_BLOCKCHAIN_TYPE", "local"),
        contracts=ArtifactTable.from_directory(CONTRACTS_DIR),
    )
    client = DavClient(config)

    dav_id = Account.from_key(IDENTITY_KEY).address
    wallet = Account.from_key(WALLET_KEY).address

    result = client.register_identity(dav_id, IDENTITY_KEY, wallet, WALLET_KEY)
    print(f"Registration: {result}")

    receipt = client.approve_mission(dav_id, WALLET_KEY)
    print(f"Approved in block {receipt.block_number}")

    mission_id = client.generate_mission_id()
    receipt = client.start_mission(mission_id, dav_id, wallet, WALLET_KEY, VEHICLE_ID)
    print(f"Mission {mission_id} created in {receipt.tx_hash}")

    receipt = client.finalize_mission(mission_id, dav_id, wallet, WALLET_KEY)
    print(f"Mission finalized in {receipt.tx_hash}")

    # Print the events seen so far, then stop
    watcher = client.watch_contract(dav_id, ContractType.BASIC_MISSION)
    for event in watcher.poll():
        print(f"  block {event.block_number} tx {event.transaction_index}: {event.event} {event.args}")


if __name__ == "__main__":
    main()
