"""releasegate: build a binary for every platform, gate it, publish it.

One trigger event (a push to a tracked branch, or a pull-request event)
runs through:

  - a publication gate (canonical repository + monotonic PR opt-in)
  - a parallel build of every target with a full join
  - staging of all artifacts into one directory
  - publication under ``rev/<revision>`` and ``branch/<name>`` or ``pr/<n>``
  - install instructions for both addresses
"""

__version__ = "0.1.0"
__description__ = "Parallel multi-platform release builds with gated publishing"

from releasegate.core.pipeline import ReleasePipeline

__all__ = ["ReleasePipeline", "__version__"]
