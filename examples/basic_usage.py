#!/usr/bin/env python3
"""Basic usage example"""

import os
import time

from scribe_module import LoggerRegistry, Mode, RegistryConfig
from scribe_module.sinks import BroadcastSink, WebSocketBroadcastServer


def main():
    # The mode comes from the application, not from inside the library
    mode = Mode.from_string(os.environ.get("APP_ENV", "development"))
    config = RegistryConfig(mode=mode, log_directory="logs")

    broadcast = BroadcastSink(probe_interval=30.0)
    server = WebSocketBroadcastServer(broadcast, port=8765).start()

    registry = LoggerRegistry(["Server", "Redis"], config=config, broadcast=broadcast)

    server_log = registry.get("Server")
    server_log.info("Application started")
    server_log.success("Listening", {"port": 8080})
    server_log.box("Startup complete", {"name": "Server"})

    redis_log = registry.get("Redis")
    redis_log.warn("Slow reply", "212ms", prefix="GET session")
    redis_log.error("Connection reset")

    registry.add("Worker")
    registry.get("Worker").debug("Polling queue")
    registry.remove("Worker")

    time.sleep(0.1)
    registry.flush()
    registry.close()
    server.close()


if __name__ == "__main__":
    main()
