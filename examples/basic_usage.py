"""
Example: Basic Service Layer usage with sap_b1
==============================================

This example shows login, querying, CRUD and callbacks.
"""

import asyncio
import logging

from sap_b1 import B1Config, ErrorKind, ServiceError, ServiceLayer, with_callbacks
from sap_b1.odata import Contains, Equal, InSet, MoreThan


async def example_basic_query():
    """Basic query example."""

    cfg = B1Config(
        host="https://your-b1.example.com",
        port=50000,
        username="manager",
        password="PASSWORD",
        company="SBODEMOUS",
    )

    layer = await ServiceLayer.create_session(cfg)
    with layer:
        orders = layer.resource("Orders")

        page = await (
            orders.query_builder()
            .select(["DocEntry", "CardCode", "DocTotal"])
            .where(Equal("CardCode", "C20000"))
            .or_where(MoreThan("DocTotal", 1000))
            .order_by("DocEntry", "desc")
            .limit(20)
            .find_all()
        )
        print(f"Found {len(page.get('value', []))} orders")

        total = await orders.query_builder().where(InSet("DocStatus", ["O", "C"])).count()
        print("Total:", total)

        await layer.logout()


async def example_env_and_crud():
    """Using B1_* environment variables (or a .env file)."""

    layer = await ServiceLayer.create_session(B1Config.from_env())
    with layer:
        partners = layer.resource("BusinessPartners")
        created = await partners.create({"CardCode": "C99999", "CardName": "O'Brien Ltd"})
        await partners.update(created["CardCode"], {"Phone1": "555-0100"})

        async for chunk in partners.query_builder().where(Contains("CardName", "Ltd")).iterate(max_pages=3):
            print(len(chunk), "partners")

        try:
            await partners.delete(created["CardCode"])
        except ServiceError as err:
            print("Delete refused:", err.status, err.response.error_message())


async def example_callbacks():
    """Callback style, for code that reacts rather than awaits."""

    layer = await ServiceLayer.create_session(B1Config.from_env())

    def on_error(payload, kind):
        if kind is ErrorKind.SERVICE:
            print("Service Layer said", payload.status_code)
        else:
            print("Could not reach the Service Layer:", payload)

    task = with_callbacks(
        layer.resource("Items").query_builder().limit(5).find_all(),
        lambda body: print([item["ItemCode"] for item in body["value"]]),
        on_error,
    )
    await asyncio.wait([task])
    layer.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)
    # Uncomment the example you want to run
    # asyncio.run(example_basic_query())
    # asyncio.run(example_env_and_crud())
    # asyncio.run(example_callbacks())

    print("Set up your environment variables and uncomment an example to run.")
    print("Required: B1_HOST, B1_USER, B1_PASS, B1_COMPANY")
