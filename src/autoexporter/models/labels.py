"""
Container labels forming the contract with the container runtime.
"""

# Explicit exporter type for a monitored container. The value is a template
# rendered against the container, e.g. "{labels[com.example.kind]}".
LABEL_EXPORTER = "autoexporter.exporter"

# Set on every sidecar. Containers carrying it are never monitored themselves.
LABEL_SIDECAR = "autoexporter.sidecar"

# Sidecar bookkeeping labels pointing back to the monitored container.
LABEL_EXPORTED_ID = "autoexporter.exported.id"
LABEL_EXPORTED_NAME = "autoexporter.exported.name"

BOOKKEEPING_LABELS = (LABEL_SIDECAR, LABEL_EXPORTED_ID, LABEL_EXPORTED_NAME)


def is_sidecar(labels: dict) -> bool:
    """Return True when the labels (or event attributes) belong to a sidecar."""
    return LABEL_SIDECAR in labels or LABEL_EXPORTED_NAME in labels
