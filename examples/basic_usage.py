#!/usr/bin/env python3
"""
Basic TrustRouter usage example.

Finds, lists and inspects agents on a live chain.
Run with: python examples/basic_usage.py [chain]

Set {CHAIN}_RPC_URL (e.g. BASE_RPC_URL) to use your own endpoint.
"""

import asyncio
import logging
import sys

from trustrouter import (
    AgentNotFoundError,
    FetchOptions,
    NoLiveEndpointError,
    TrustRouterClient,
    configure_logging,
)


async def main(chain: str) -> None:
    print(f"=== TrustRouter on {chain} ===\n")

    async with TrustRouterClient.from_env() as client:
        # 1. How many agents are registered
        try:
            total = await client.get_total_agents(chain)
        except NoLiveEndpointError as e:
            print(f"   {e}")
            return
        print(f"1. {total} agents registered\n")

        # 2. Best matches for a task
        print("2. Agents for 'code review'...")
        for result in await client.find("code review", chain=chain):
            agent = result.agent
            print(f"   #{agent.agent_id} {agent.display_name} (score {result.trust_score:.2f})")

        # 3. Top agents by reputation, refreshed from the chain
        print("\n3. Top 5 by reputation (fresh read)...")
        _, ranked = await client.list_agents(
            chain=chain, limit=5, options=FetchOptions(force_refresh=True)
        )
        for result in ranked:
            summary = result.to_summary()
            print(
                f"   #{summary['agentId']} {result.agent.display_name}: "
                f"{summary['feedbackCount']} feedback, avg {summary['avgScore']:.1f}"
            )

        # 4. One agent in detail
        print("\n4. Inspecting agent 0...")
        try:
            result = await client.inspect("0", chain=chain)
        except AgentNotFoundError as e:
            print(f"   {e}")
        else:
            for key, value in result.agent.to_detail(result.trust_score).items():
                print(f"   {key}: {value}")


if __name__ == "__main__":
    configure_logging(level=logging.WARNING)
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "base"))
