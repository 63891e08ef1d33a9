PROG = "gridstats"

# Config file discovery and blocks (gridstats.yml)
CONFIG_FILENAMES = ("gridstats.yml", "gridstats.yaml")
CONFIG_BLOCK = "gridstats"

# Option keys shared by the CLI and the config file
OPT_LIMIT = "limit"
OPT_REGION = "region"
OPT_POLYGON = "polygon"
OPT_STRIDE = "stride"
OPT_SAMPLE = "sample"
OPT_SEED = "seed"
OPT_MATCH = "match"
OPT_OUTPUT = "output"
OPT_CHUNK_SIZE = "chunk_size"
OPT_HISTOGRAM = "histogram"
LOG_LEVEL = "log_level"

CONFIG_KEYS = (
    OPT_LIMIT,
    OPT_REGION,
    OPT_POLYGON,
    OPT_STRIDE,
    OPT_SAMPLE,
    OPT_SEED,
    OPT_MATCH,
    OPT_OUTPUT,
    OPT_CHUNK_SIZE,
    OPT_HISTOGRAM,
    LOG_LEVEL,
)

# Defaults
DEFAULT_STRIDE = 1
DEFAULT_CHUNK_SIZE = 65536
DEFAULT_LOG_LEVEL = "WARNING"

# Separators accepted in LAT/LON/RADIUS and ROW/COL limit strings
SPLIT_REGEX = r"[/,\s]+"

# Geodesic tracing of circular regions (bearing step in degrees)
REGION_BEARING_STEP = 5.0
GEOD_ELLPS = "WGS84"
GEO_CRS = "EPSG:4326"

# Vector formats read through geopandas for polygon vertices
VECTOR_SUFFIXES = (".gpkg", ".geojson", ".json", ".shp", ".fgb")

# Statistics
HISTOGRAM_BINS = 100

# Report layout (column name, width)
REPORT_COLUMNS = (
    ("Variable", 14),
    ("Count", 9),
    ("Valid", 9),
    ("Min", 10),
    ("Max", 10),
    ("Mean", 10),
    ("Stdev", 10),
    ("Median", 10),
)
REPORT_DECIMALS = 6
NAN_TEXT = "NaN"

# Logging format (green timestamp | level | message)
LOGURU_FORMAT = "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | {message}"

# Tolerance for grid coordinates on polygon edges and lattice bounds
GRID_TOL = 1e-9
