# SPDX-License-Identifier: Apache-2.0
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Policy, invariant and drift evaluation kernel for the maintenance bot.
"""

from pathlib import Path

ELEMENT_ID = "Steward"

# Canonical repository root for governance tooling.
REPO_ROOT = Path(__file__).resolve().parents[1]
ROOT_DIR = REPO_ROOT

__all__ = ["ROOT_DIR", "REPO_ROOT", "ELEMENT_ID"]
