import os
import socket
import threading
import time
import webbrowser

import uvicorn

from main import app

HOST = os.environ.get("DRILL_HOST", "127.0.0.1")
PORT = int(os.environ.get("DRILL_PORT", "8000"))


def wait_for_server(host, port, timeout=10):
    start = time.time()
    while time.time() - start < timeout:
        try:
            with socket.create_connection((host, port), timeout=0.5):
                return True
        except OSError:
            time.sleep(0.2)
    return False


def open_browser():
    if wait_for_server(HOST, PORT):
        webbrowser.open(f"http://{HOST}:{PORT}/docs")


def main():
    threading.Thread(target=open_browser, daemon=True).start()

    uvicorn.run(
        app,
        host=HOST,
        port=PORT,
        log_level="info",
    )


if __name__ == "__main__":
    main()
