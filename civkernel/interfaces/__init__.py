# SPDX-License-Identifier: Apache-2.0
from civkernel.interfaces.ilogger import ILogger

__all__ = ["ILogger"]
