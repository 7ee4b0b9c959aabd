"""
Basic dashstore usage example.

This example walks through a typical admin session:
- Building a Dashboard from the environment
- Logging in
- Listing, creating, updating and deleting workshops
- Saving site settings
- Logging out

Set DASHSTORE_API_URL, DASHSTORE_EMAIL and DASHSTORE_PASSWORD before running.
"""

import asyncio
import logging
import os

from dashstore import Config, Dashboard, DashStoreError, Upload


async def basic_example():
    """Demonstrate basic dashstore usage"""
    print("Basic dashstore Example")
    print("=" * 30)

    # 1. Create the dashboard
    dashboard = Dashboard.new(Config.from_env())
    await dashboard.start()
    print(f"✓ Dashboard ready for {dashboard.config.base_url}")

    try:
        # 2. Log in
        await dashboard.login(
            os.environ.get("DASHSTORE_EMAIL", "admin@example.com"),
            os.environ.get("DASHSTORE_PASSWORD", "secret"),
        )
        print(f"✓ Logged in as {dashboard.session.admin}")

        # 3. List workshops
        workshops = dashboard.store("workshops")
        workshops.subscribe(lambda state: logging.debug(f"workshops: {len(state.collection)} record(s)"))
        await workshops.fetch_all()
        print(f"✓ Loaded {len(workshops.collection)} workshop(s)")

        # 4. Create one with a cover image
        created = await workshops.create_one({
            "title": "Example workshop",
            "image": Upload(b"\x89PNG\r\n\x1a\n", filename="cover.png"),
        })
        print(f"✓ Created workshop {created}")

        # 5. Rename it, then delete it
        if created:
            workshop_id = created.get("id")
            await workshops.update_one(workshop_id, {"title": "Renamed workshop"})
            print("✓ Renamed workshop")
            await workshops.delete_one(workshop_id)
            print(f"✓ Deleted workshop, {len(workshops.collection)} left")

        # 6. Update site settings
        settings = dashboard.store("settings")
        await settings.fetch()
        await settings.save({**(settings.selected or {}), "site_name": "Programs House"})
        print(f"✓ Settings saved: {settings.selected}")

    except DashStoreError as e:
        print(f"✗ {e.code.value}: {e.message}")

    finally:
        # 7. Log out and clean up
        await dashboard.logout()
        await dashboard.close()
        print("✓ Logged out")


if __name__ == "__main__":
    asyncio.run(basic_example())
