"""
Centralized constants for the Hardware Inventory engine.
Display labels are kept in the language of the summary view.
"""

# --- Units ---
BYTES_PER_GIB = 1024 ** 3
CM_PER_INCH = 2.54
BITS_PER_MBIT = 1_000_000

# --- EDID ---
MAX_MANUFACTURE_WEEK = 52
MAX_MANUFACTURE_YEAR = 99
CORRUPT_EDID_MARKER = "0000"
MIN_MANUFACTURER_LENGTH = 3
MONITOR_PLACEHOLDERS = ("Generic", "通用", "(标准监视器类型)", "(Standard monitor types)")
MONITOR_NULL_MANUFACTURERS = ("None",)   # matched exactly

# --- Disk ---
SSD_CAPACITY_CEILING_GB = 512   # at or below: flash-like keywords imply solid state
HDD_CAPACITY_FLOOR_GB = 1000    # at or above: known HDD brands imply spinning disk
DISK_MANUFACTURER_NOISE = ("(标准磁盘驱动器)", "(Standard disk drives)")

# --- GPU ---
VRAM_PLAUSIBLE_MIN_GB = 2.0
VRAM_PLAUSIBLE_MAX_GB = 100.0
VRAM_HIGH_TIER_RATIO = 0.5      # reported below this share of the estimate is distrusted
BASIC_DISPLAY_ADAPTER = "Microsoft Basic Display Adapter"

# --- Network ---
MAX_PLAUSIBLE_LINK_MBPS = 100_000

# --- Sources ---
DEFAULT_COMMAND_TIMEOUT = 15        # seconds
WMI_NAMESPACE = "root\\cimv2"
WMI_MONITOR_NAMESPACE = "root\\wmi"
STORAGE_NAMESPACE = "root\\Microsoft\\Windows\\Storage"

# --- Display sentinels ---
UNKNOWN_MANUFACTURER = "未知制造商"
UNKNOWN_MODEL = "未知型号"
UNKNOWN_SIZE = "未知尺寸"
UNKNOWN_VERSION = "未知版本"
UNKNOWN_GENERATION = "未知"
UNKNOWN_RESOLUTION = "?x?@?Hz"
UNKNOWN_OS = "Unknown OS"
UNKNOWN_OS_VERSION = "Unknown Version"
UNKNOWN_VALUE = "Unknown"
UNKNOWN_CPU = "Unknown CPU"
UNKNOWN_MEMORY = "未知内存"
UNKNOWN_DISK = "未知硬盘"
UNKNOWN_GPU = "未知显卡"
UNKNOWN_NETWORK = "未知网络适配器"
NO_MONITOR_DETECTED = "未检测到显示器信息"
