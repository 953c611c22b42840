# SPDX-License-Identifier: Apache-2.0
"""HTTP routers."""

from app.api.maintenance import router as maintenance_router

__all__ = ["maintenance_router"]
