"""Host block device inventory from `lsblk --pairs`."""

from __future__ import annotations

import json
import logging
import queue
import re
import subprocess
from typing import Any, Callable, Dict, List, Optional

from troubleshoot.collect.base import send_progress
from troubleshoot.collect.result import CollectorResult
from troubleshoot.core.errors import CollectorError
from troubleshoot.core.models import BlockDeviceInfo, BlockDevicesCollectorSpec

logger = logging.getLogger(__name__)

LSBLK_COLUMNS = "NAME,KNAME,PKNAME,TYPE,MAJ:MIN,SIZE,FSTYPE,MOUNTPOINT,SERIAL,RO,RM"
OUTPUT_PATH = "system/block_devices.json"

# KEY="value" pairs; lsblk >= 2.37 spells MAJ:MIN as MAJ_MIN in pairs mode.
_PAIR_RE = re.compile(r'([A-Z_:-]+)="((?:[^"\\]|\\.)*)"')
_HEX_ESCAPE_RE = re.compile(r"\\x([0-9a-fA-F]{2})")


def _unescape(value: str) -> str:
    return _HEX_ESCAPE_RE.sub(lambda m: chr(int(m.group(1), 16)), value)


def _to_int(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        return 0


def parse_lsblk_line(line: str) -> Optional[BlockDeviceInfo]:
    pairs = {k.replace("_", ":") if k == "MAJ_MIN" else k: _unescape(v) for k, v in _PAIR_RE.findall(line)}
    if not pairs:
        return None
    major, _, minor = pairs.get("MAJ:MIN", "").partition(":")
    return BlockDeviceInfo(
        name=pairs.get("NAME", ""),
        kernel_name=pairs.get("KNAME", ""),
        parent_kernel_name=pairs.get("PKNAME", ""),
        type=pairs.get("TYPE", ""),
        major=_to_int(major),
        minor=_to_int(minor),
        size=_to_int(pairs.get("SIZE", "")),
        filesystem_type=pairs.get("FSTYPE", ""),
        mountpoint=pairs.get("MOUNTPOINT", ""),
        serial=pairs.get("SERIAL", ""),
        read_only=pairs.get("RO") == "1",
        removable=pairs.get("RM") == "1",
    )


def parse_lsblk_pairs(output: str) -> List[BlockDeviceInfo]:
    devices: List[BlockDeviceInfo] = []
    for line in output.splitlines():
        dev = parse_lsblk_line(line)
        if dev is not None:
            devices.append(dev)
    return devices


def run_lsblk() -> str:
    try:
        proc = subprocess.run(
            ["lsblk", "--noheadings", "--bytes", "--pairs", "-o", LSBLK_COLUMNS],
            capture_output=True,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError) as e:
        raise CollectorError(f"failed to execute lsblk: {e}") from e
    return proc.stdout


class CollectHostBlockDevices:
    def __init__(
        self,
        collector: BlockDevicesCollectorSpec,
        *,
        bundle_path: Optional[str] = None,
        runner: Callable[[], str] = run_lsblk,
    ) -> None:
        self.collector = collector
        self.bundle_path = bundle_path
        self.runner = runner

    def title(self) -> str:
        return self.collector.collector_name or "Block Devices"

    def is_excluded(self) -> bool:
        return self.collector.is_excluded()

    def collect(self, progress: Optional["queue.Queue[Any]"] = None) -> CollectorResult:
        devices = parse_lsblk_pairs(self.runner())
        logger.debug("Found %d block devices", len(devices))
        body: List[Dict[str, Any]] = [d.model_dump() for d in devices]

        output = CollectorResult()
        output.save_result(self.bundle_path, OUTPUT_PATH, json.dumps(body))
        send_progress(progress, f"{self.title()}: found {len(devices)} block devices")
        return output
