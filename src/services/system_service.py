import shutil
from typing import List, Optional

import psutil

from src.config.constants import BYTES_PER_GIB, DEFAULT_COMMAND_TIMEOUT
from src.schemas.hardware import RawRecord, TextValue, UIntValue
from src.services.hardware.base import SourceUnavailableError
from src.utils.formatting import round_half_up
from src.utils.logger import log
from src.utils.subprocess_utils import run_command, split_lines

NVIDIA_SMI_QUERY = ["--query-gpu=name,memory.total", "--format=csv,noheader,nounits"]
BYTES_PER_MIB = 1024 ** 2


class SystemService:
    """
    Host-tool fallbacks used when management tables are missing or wrong:
    nvidia-smi for GPU memory and psutil for link speeds and total RAM.
    """

    @staticmethod
    def get_nvidia_gpus(timeout: float = DEFAULT_COMMAND_TIMEOUT) -> List[RawRecord]:
        """
        Query nvidia-smi for GPU names and memory.

        Returns:
            One record per GPU with Name, AdapterCompatibility and
            DedicatedMemory (bytes)

        Raises:
            SourceUnavailableError: nvidia-smi is missing or failed
        """
        if not shutil.which("nvidia-smi"):
            raise SourceUnavailableError("nvidia-smi", "Not installed")

        output = run_command(["nvidia-smi"] + NVIDIA_SMI_QUERY, timeout=timeout)
        if output is None or not output.ok:
            raise SourceUnavailableError("nvidia-smi", "Query failed",
                                         None if output is None else f"exit {output.exit_status}")
        return parse_nvidia_smi(output.text)

    @staticmethod
    def get_network_links() -> List[RawRecord]:
        """Interfaces that are up, with their link speed in Mbps when known."""
        try:
            stats = psutil.net_if_stats()
        except (OSError, RuntimeError) as e:
            raise SourceUnavailableError("psutil", "net_if_stats failed", str(e))

        records = []
        for name, stat in stats.items():
            if not stat.isup or "loopback" in name.lower():
                continue
            fields = [("Name", TextValue(name))]
            if stat.speed and stat.speed > 0:
                fields.append(("SpeedMbps", UIntValue(int(stat.speed), 32)))
            records.append(RawRecord(fields, source="psutil"))
        return records

    @staticmethod
    def get_total_memory_gb() -> Optional[int]:
        """Total physical memory rounded to whole GB, None if unknown."""
        try:
            total = psutil.virtual_memory().total
        except (OSError, RuntimeError) as e:
            log.warning(f"psutil memory query failed: {e}")
            return None
        return round_half_up(total / BYTES_PER_GIB) if total else None


def parse_nvidia_smi(text: str) -> List[RawRecord]:
    """
    Parse ``name, memory.total`` CSV rows. Rows with unreadable memory
    ("[N/A]", blanks) keep the name and omit the memory field.
    """
    records = []
    for line in split_lines(text):
        if "," not in line:
            log.debug(f"Skipping nvidia-smi line: {line!r}")
            continue
        name, memory = (part.strip() for part in line.rsplit(",", 1))
        if not name:
            continue
        fields = [("Name", TextValue(name)), ("AdapterCompatibility", TextValue("NVIDIA"))]
        try:
            fields.append(("DedicatedMemory", UIntValue(int(float(memory) * BYTES_PER_MIB), 64)))
        except ValueError:
            log.debug(f"nvidia-smi reported no memory for {name}: {memory!r}")
        records.append(RawRecord(fields, source="nvidia-smi"))
    return records
