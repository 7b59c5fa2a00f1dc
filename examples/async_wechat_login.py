"""
WeChat login - async client

Shows a QR code in the terminal; scan it with WeChat and confirm on the
phone. Cookies are saved to uestc_cookies.json, so the next run skips the
scan while the session is still valid.
"""
import asyncio
import logging

from uestc_client import UestcClient, UestcClientError


async def main():
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    print("=== UESTC Async WeChat Login ===\n")

    async with UestcClient() as client:
        try:
            result = await client.wechat_login()
        except UestcClientError as e:
            print(f"\nLogin failed: {e}")
            return

        print(f"\nLogin result: {result.name}")

        if await client.is_session_active():
            print("Session is active and ready to use.")

        # Any request made through the client carries the session cookies
        async with client.get("https://idas.uestc.edu.cn/authserver/login") as resp:
            print(f"Request successful! Final URL: {resp.url}")


if __name__ == "__main__":
    asyncio.run(main())
