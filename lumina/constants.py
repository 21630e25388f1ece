"""Application-wide constants.

Coordinates are abstract stage units with the subject fixed at the origin:
x = horizontal (negative left), y = depth (positive towards the front of
the subject), z = height (0 = eye level).
"""

APP_NAME = "Lumina Studio"
APP_VERSION = "0.1.0"
APP_ORGANIZATION = "Lumina"

# Stage extents (informational, not enforced)
STAGE_HALF_EXTENT = 300.0
STAGE_HALF_HEIGHT = 200.0

# Controls
APERTURE_STOPS = ["f/1.4", "f/2.8", "f/5.6", "f/8", "f/11", "f/16"]
DEFAULT_APERTURE = "f/5.6"
DEFAULT_F_NUMBER = 5.6
AVAILABLE_FILTERS = [
    "Film Grain",
    "Cinematic Color Grading",
    "Vignette",
    "Motion Blur",
    "Chromatic Aberration",
]
POST_PROCESSING_MIN = 0
POST_PROCESSING_MAX = 100

# Lens thresholds — planar camera distance
LENS_FISHEYE_MAX = 60.0
LENS_WIDE_MAX = 100.0
LENS_35MM_MAX = 140.0
LENS_PORTRAIT_MIN = 180.0
LENS_TELEPHOTO_MIN = 250.0

# Camera height thresholds
ANGLE_HIGH_MIN = 60.0
ANGLE_ELEVATED_MIN = 20.0
ANGLE_SLIGHTLY_LOW_MAX = -20.0
ANGLE_LOW_MAX = -60.0

# Azimuth / composition
VIEW_CENTER_HALF_WIDTH = 50.0
COMPOSITION_THIRDS_OFFSET = 80.0

# Depth of field [f-number]
DOF_SHALLOW_MAX = 2.8
DOF_DEEP_MIN = 11.0

# Post-processing level above which an effect is described
POST_PROCESSING_THRESHOLD = 20

# Lighting thresholds
LIGHT_OVERHEAD_MIN_Z = 100.0
LIGHT_UNDER_MAX_Z = -50.0
LIGHT_HARSH_MAX_DIST = 80.0
LIGHT_DIFFUSE_MIN_DIST = 200.0

# Render service (Replicate)
REPLICATE_BASE_URL = "https://api.replicate.com/v1"
REPLICATE_MODEL = "bria/fibo"
RENDER_ASPECT_RATIO = "16:9"
RENDER_NUM_OUTPUTS = 1
POLL_INTERVAL_S = 1.0
MAX_POLL_ATTEMPTS = 60
REQUEST_TIMEOUT_S = 30.0
ERROR_BODY_LIMIT = 200

# Director agent (Gemini)
GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
GEMINI_MODEL = "gemini-2.5-flash"

# Database
DB_FILENAME = "lumina.db"
STATE_SCHEMA_VERSION = "1.0"
