#!/usr/bin/env python3

import json
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field

CONFIG_FILE_NAME = "declfacts.json"

OutputKind = Literal[
    "functions", "typedefs", "enums", "enum_values", "structs", "struct_relations"
]


class OutputFiles(BaseModel):
    """File names, relative to the output directory, for each kind of fact."""

    functions: str = "functions.jsonl"
    typedefs: str = "typedefs.jsonl"
    enums: str = "enums.jsonl"
    enum_values: str = "enum_values.jsonl"
    structs: str = "structs.jsonl"
    struct_relations: str = "struct_relations.jsonl"


class ExtractConfig(BaseModel):
    """Configuration for one extraction run."""

    source_root: Path
    output_dir: Path = Path("facts")

    # Parsing
    extensions: list[str] = Field(default_factory=lambda: [".c", ".h"])
    compile_args: list[str] = Field(default_factory=lambda: ["-std=c99"])
    include_dirs: list[str] = Field(default_factory=list)  # relative to source_root
    include_system_headers: bool = False

    jobs: int = Field(default=1, ge=1)
    outputs: OutputFiles = Field(default_factory=OutputFiles)

    def output_path(self, kind: OutputKind) -> Path:
        """Get the destination file for a kind of fact."""
        return self.output_dir / getattr(self.outputs, kind)

    def parse_args(self) -> list[str]:
        """Compiler arguments handed to libclang."""
        args = list(self.compile_args)
        for include_dir in self.include_dirs:
            args.append(f"-I{self.source_root / include_dir}")
        return args

    @classmethod
    def load_from_file(cls, config_path: Path) -> "ExtractConfig":
        """Load configuration from a JSON file."""
        args = json.loads(config_path.read_text())
        root = config_path.parent
        args["source_root"] = root / args.get("source_root", ".")
        if "output_dir" in args:
            args["output_dir"] = root / args["output_dir"]
        return cls.model_validate(args)

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to a JSON file."""
        data = self.model_dump(mode="json", exclude={"source_root"})
        config_path.write_text(json.dumps(data, indent=2))

    @classmethod
    def find_config(cls, start_path: Path) -> Optional["ExtractConfig"]:
        """Find configuration by searching up the directory tree."""
        current = start_path.resolve()
        while current != current.parent:
            config_file = current / CONFIG_FILE_NAME
            if config_file.exists():
                return cls.load_from_file(config_file)
            current = current.parent
        return None
