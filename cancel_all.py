"""Cancel our open orders on Bitfex: every pair, or only the pairs given as arguments."""
import asyncio
import os
import sys

from dotenv import load_dotenv

from marketbot.exchange.bitfex import BitfexGateway
from marketbot.exchange.execution import OrderExecutor

load_dotenv()


async def main(pairs: list[str]) -> None:
    gateway = BitfexGateway(os.getenv("SERVER", "https://bitfex.trade"))
    executor = OrderExecutor(gateway)
    try:
        await gateway.authenticate(os.environ["EMAIL"], os.environ["PASSWORD"])
        orders = await gateway.get_open_orders()
        targets = sorted(set(pairs) if pairs else {o.pair for o in orders})
        for pair in targets:
            pair_orders = [o for o in orders if o.pair == pair]
            result = await executor.cancel(pair, pair_orders, reason="manual")
            print(f"{pair}: cancelled {result.cancelled_count}/{len(pair_orders)}")
            for err in result.errors:
                print(f"  error: {err}")
    finally:
        await gateway.close()


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1:]))
