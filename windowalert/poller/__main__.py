"""Window alert polling service entrypoint.

Polls the measurement API once per interval, persists new readings, and
sends a push notification when a device's window appears to be open.

Usage: python -m windowalert.poller
"""

from windowalert.poller.service import main

if __name__ == "__main__":
    main()
