"""Configuration settings for arcweld."""

# Maximum deviation between an original point and its replacement (drawing units)
DEFAULT_TOLERANCE = 0.05

# Points closer than this are treated as the same point
POINT_PRECISION = 0.00001

# Slack for angle sums compared against a full turn (radians)
ANGLE_EPSILON = 1e-9

# Arc fitting constants and constraints
FIT_DEFAULTS = {
    "max_radius": 100000.0,  # Larger circles are treated as straight lines
    "min_arc_angle": 5.0,  # Minimum sweep of an emitted arc in degrees
    "max_step_angle": 30.0,  # Max angle between consecutive points seen from the center
    "collinear_epsilon": 1e-9,  # Singular value ratio below which points are collinear
    "min_arc_points": 3,  # Minimum number of points an arc may replace
}

# DXF output
DEFAULT_DXF_VERSION = "R2010"

# Entities the extractor turns into polylines
SOURCE_ENTITY_TYPES = ("LINE", "LWPOLYLINE", "POLYLINE")

# Non-geometric DXF attributes carried from source entities to fitted entities
PASSTHROUGH_ATTRIBUTES = (
    "layer",
    "color",
    "true_color",
    "linetype",
    "lineweight",
    "ltscale",
    "transparency",
    "thickness",
    "invisible",
)
