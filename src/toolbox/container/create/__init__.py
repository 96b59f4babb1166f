# SPDX-FileCopyrightText: 2026 Toolbox Contributors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Container creation pipeline: checks, image, host inputs, podman create.

Importing this package registers all steps with the pipeline.
"""

from ...pipeline import Pipeline
from ..contexts import CreateContext

create_pipeline = Pipeline[CreateContext]("create")

# Import step modules so their decorators register with the pipeline.
from . import validate as _  # noqa: F401, E402
from . import acquire_image as _  # noqa: F401, E402
from . import build_args as _  # noqa: F401, E402
from . import create_instance as _  # noqa: F401, E402
