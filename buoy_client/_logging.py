# =============================================================================
# Buoy Python Client -- Logging
# =============================================================================

import logging

logger = logging.getLogger("buoy_client")
