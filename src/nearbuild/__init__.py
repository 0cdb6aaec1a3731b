from .dsl import sh, install_step, compile_step, metadata_step, copy_step, pipeline
from .runner import run_pipeline, load_pipeline
from .model import Step, ArtifactSpec, PipelineResult
from .config import BuildConfig

__all__ = [
    "sh", "install_step", "compile_step", "metadata_step", "copy_step", "pipeline",
    "run_pipeline", "load_pipeline", "Step", "ArtifactSpec", "PipelineResult", "BuildConfig",
]
