# SPDX-FileCopyrightText: 2026 Toolbox Contributors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Container management package: public API re-exports."""

from .service import ContainerService

__all__ = ["ContainerService"]
