"""
JWT Session - Basic Usage Example

Restores a stored session on startup, probes the API with it and falls back
to an interactive login when the stored token is rejected.
"""

import asyncio
import getpass
import logging

from jwt_session import (
    SessionManager,
    AsyncSessionManager,
    SessionConfig,
    FileStore,
    UnauthorizedError,
    APIError,
)


def sync_example():
    """Synchronous manager example."""
    print("=== Sync Manager Example ===\n")

    manager = SessionManager(SessionConfig.from_env(storage=FileStore(), debug=True))

    session = manager.restore()
    if session is not None:
        with manager.authenticated_client(session) as client:
            try:
                probe = client.get("/api/me/")
            except Exception as e:
                print(f"Error (expected without real API): {type(e).__name__}")
                probe = None
        if probe is not None and probe.status_code == 401:
            print("Stored token rejected, logging in again")
            manager.clear(purge=True)
            session = None

    if session is None:
        username = input("Username: ")
        password = getpass.getpass("Password: ")
        try:
            session = manager.login(username, password)
            print(f"Logged in as: {session.username}")
        except UnauthorizedError:
            print("Wrong username or password")
        except APIError as e:
            print(f"Service unavailable: {e.message}")

    # Cleanup
    manager.close()


async def async_example():
    """Asynchronous manager example."""
    print("\n=== Async Manager Example ===\n")

    async with AsyncSessionManager(SessionConfig.from_env(debug=True)) as manager:
        try:
            session = await manager.login("demo", "demo-password")
        except APIError as e:
            print(f"Error (expected without real API): {e.message}")
            return
        except UnauthorizedError:
            print("Wrong username or password")
            return

        async with manager.authenticated_client(session) as client:
            response = await client.get("/api/me/")
            print(f"GET /api/me/ -> {response.status_code}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)
    sync_example()
    asyncio.run(async_example())

    print("\nExamples completed!")
