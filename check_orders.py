"""Show balances and our open orders per pair on Bitfex."""
import asyncio
import os
from collections import defaultdict

from dotenv import load_dotenv

from marketbot.exchange.bitfex import BitfexGateway

load_dotenv()


async def main() -> None:
    gateway = BitfexGateway(os.getenv("SERVER", "https://bitfex.trade"))
    try:
        await gateway.authenticate(os.environ["EMAIL"], os.environ["PASSWORD"])

        balances = await gateway.get_balances()
        print("Balances:")
        for currency, amount in sorted(balances.items()):
            if amount:
                print(f"  {currency}: {amount}")

        orders = await gateway.get_open_orders()
        print(f"\nOpen orders: {len(orders)}")
        by_pair = defaultdict(list)
        for o in orders:
            by_pair[o.pair].append(o)
        for pair, pair_orders in sorted(by_pair.items()):
            print(f"  {pair}: {len(pair_orders)}")
            for o in sorted(pair_orders, key=lambda o: (o.side.value, o.price)):
                print(f"    {o.side.value:4} {o.amount:.8f} @ {o.price}  (id={o.id})")
    finally:
        await gateway.close()


if __name__ == "__main__":
    asyncio.run(main())
