"""
Password login and an authenticated API call

Reads credentials from UESTC_USERNAME / UESTC_PASSWORD, logs in, opens the
online service hall and queries the dormitory electricity balance.
"""
import asyncio
import getpass
import os

from uestc_client import (
    CredentialsInvalidError,
    UestcClient,
    UestcClientError,
    setup_logging,
)

# Forces CAS authentication so the service hall sets its own token
SERVICE_HALL_LOGIN = (
    "https://online.uestc.edu.cn/common/actionCasLogin"
    "?redirect_url=https://online.uestc.edu.cn/page/"
)
BEDROOM_API = "https://online.uestc.edu.cn/site/bedroom"


async def main():
    setup_logging()

    username = os.environ.get("UESTC_USERNAME") or input("Username: ")
    password = os.environ.get("UESTC_PASSWORD") or getpass.getpass("Password: ")

    async with UestcClient("uestc_cookies.json") as client:
        try:
            result = await client.login(username, password)
        except CredentialsInvalidError:
            print("Wrong username or password")
            return
        except UestcClientError as e:
            print(f"Login failed: {e}")
            return

        print(f"Login result: {result.name}")

        async with client.get(SERVICE_HALL_LOGIN) as resp:
            print(f"Service hall: {resp.status}")

        headers = {
            "Referer": "https://online.uestc.edu.cn/page/",
            "Accept": "application/json, text/plain, */*",
        }
        async with client.get(BEDROOM_API, headers=headers) as resp:
            payload = await resp.json(content_type=None)

        if payload.get("e") != 0:
            print(f"API error: {payload.get('m')}")
            return

        data = payload["d"]
        print(f"Room: {data.get('roomName')} (ID: {data.get('roomId')})")
        print(f"Electricity: {data.get('sydl')} kWh")
        print(f"Balance: {data.get('syje')} CNY")


if __name__ == "__main__":
    asyncio.run(main())
