"""Chart definition I/O."""

from .spec_files import FileProducer, SpecFileResult, load_specs_from_file

__all__ = ["FileProducer", "SpecFileResult", "load_specs_from_file"]
