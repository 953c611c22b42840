# SPDX-License-Identifier: Apache-2.0
"""Service layer for the civkernel policy kernel."""
