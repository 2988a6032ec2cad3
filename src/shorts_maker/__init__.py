"""
AI Shorts Maker – brief in, narrated vertical short out.

  from shorts_maker.api import create_short
  result = await create_short({"topic": "Black holes", "durationSeconds": 45})

Or wire your own adapters:
  from shorts_maker.application import PipelineOrchestrator
  from shorts_maker.adapters import default_adapters
  pipeline = PipelineOrchestrator(**default_adapters(visual_service=MyVisuals()))
"""

__version__ = "0.1.0"
