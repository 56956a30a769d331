# Infrastructure routes (unversioned) and the v1 availability router
from . import (
    availability as availability,
    prometheus as prometheus,
)
