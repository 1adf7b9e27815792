"""Probe a running signaling server by creating and closing one connection."""

from __future__ import annotations

import json

from rtcsignal.cli.output import console, print_error, print_success
from rtcsignal.client import ClientError, SignalingClient
from rtcsignal.core.constants import DEFAULT_PREFIX


async def run_probe(
    url: str,
    prefix: str | None = None,
    api_key: str | None = None,
) -> int:
    """Create a connection, print what the server returned, then close it.

    Returns:
        0 if the round trip succeeded, 1 otherwise.
    """
    async with SignalingClient(url, prefix=prefix or DEFAULT_PREFIX, api_key=api_key) as client:
        try:
            created = await client.create_connection()
        except ClientError as e:
            print_error(e.message)
            return 1

        print_success(f"Created connection {created.id}")
        console.print(f"Offer type: {created.local_description.type}")
        console.print(f"Offer size: {len(created.local_description.sdp)} bytes")
        if created.user_data is not None:
            console.print(f"User data: {json.dumps(created.user_data)}")

        try:
            candidates = await client.poll_candidates(created.id)
            console.print(f"Buffered candidates: {len(candidates)}")
            await client.close(created.id)
        except ClientError as e:
            print_error(e.message)
            return 1

    print_success("Connection closed")
    return 0
