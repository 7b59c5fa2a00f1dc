"""
WeChat login - blocking client

Same as async_wechat_login.py without asyncio.
"""
import logging

from uestc_client import UestcBlockingClient, UestcClientError


def main():
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    print("=== UESTC Blocking WeChat Login ===\n")

    with UestcBlockingClient() as client:
        try:
            result = client.wechat_login()
        except UestcClientError as e:
            print(f"\nLogin failed: {e}")
            return

        print(f"\nLogin result: {result.name}")

        if client.is_session_active():
            print("Session is active and ready to use.")

        resp = client.get("https://idas.uestc.edu.cn/authserver/login")
        print(f"Request successful! Final URL: {resp.url}")


if __name__ == "__main__":
    main()
