# tems/collector.py
"""Reference agent: samples the local host with psutil and pushes it to TEMS."""
import argparse
import logging
import os
import socket
import time

import psutil
import requests

from .schemas import Metric

logger = logging.getLogger(__name__)

# Config from environment or defaults
TEMS_URL = os.getenv("TEMS_URL", "http://localhost:8080/metrics")
INTERVAL = int(os.getenv("AGENT_INTERVAL_SECONDS", "10"))
TOP_PROCESSES = 5

HEADERS = {"Content-Type": "application/json"}


def local_ip() -> str:
    try:
        return socket.gethostbyname(socket.gethostname())
    except OSError:
        return ""


def top_processes(limit=TOP_PROCESSES):
    # first call to cpu_percent per process returns 0.0, so prime it once
    for p in psutil.process_iter(attrs=["pid"]):
        try:
            p.cpu_percent(interval=None)
        except psutil.Error:
            continue
    time.sleep(0.1)

    procs = []
    for p in psutil.process_iter(attrs=["pid", "name", "cpu_percent", "memory_info"]):
        info = p.info
        mem = info.get("memory_info")
        procs.append({
            "pid": info["pid"],
            "name": info.get("name"),
            "cpu_percent": info.get("cpu_percent") or 0.0,
            "mem_mb": round(mem.rss / (1024 * 1024), 2) if mem else 0.0,
        })
    procs.sort(key=lambda x: x["cpu_percent"], reverse=True)
    return procs[:limit]


def sample_once(hostname=None, disk_path="/") -> Metric:
    net = psutil.net_io_counters()
    return Metric(
        hostname=hostname or socket.gethostname(),
        ip=local_ip(),
        cpu_percent=psutil.cpu_percent(interval=None),
        mem_percent=psutil.virtual_memory().percent,
        disk_percent=psutil.disk_usage(disk_path).percent,
        network=net._asdict() if net else {},
        processes=top_processes(),
    )


def send(metric: Metric, url=TEMS_URL, timeout=5):
    # last_seen is assigned by the server
    body = metric.model_dump_json(exclude={"last_seen"})
    try:
        r = requests.post(url, data=body, headers=HEADERS, timeout=timeout)
        r.raise_for_status()
        return r.status_code, None
    except requests.RequestException as e:
        return None, str(e)


def loop_send(url=TEMS_URL, hostname=None, interval=INTERVAL):
    logger.info("agent: sending to %s every %ss", url, interval)
    while True:
        status, err = send(sample_once(hostname=hostname), url=url)
        if err:
            logger.warning("send failed: %s", err)
        else:
            logger.debug("sent -> %s", status)
        time.sleep(interval)


def main(argv=None):
    parser = argparse.ArgumentParser(prog="tems-agent", description="push local host metrics to TEMS")
    parser.add_argument("--url", type=str, default=TEMS_URL)
    parser.add_argument("--hostname", type=str, default=None)
    parser.add_argument("--interval", type=int, default=INTERVAL)
    parser.add_argument("--loop", action="store_true", help="continuously sample and send")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

    if args.loop:
        try:
            loop_send(url=args.url, hostname=args.hostname, interval=args.interval)
        except KeyboardInterrupt:
            return 0
    status, err = send(sample_once(hostname=args.hostname), url=args.url)
    if err:
        logger.error("send failed: %s", err)
        return 1
    logger.info("result: %s", status)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
