"""
Tool Models — Pydantic schemas for external tool command templates.

A profile describes how to call one external converter:

    transcoder:
      binary: ffmpeg
      args: ["-y", "-i", "{input}", "{output}"]

    document:
      binary: libreoffice
      args: ["-env:UserInstallation={profile_uri}", "--headless",
             "--convert-to", "{format}", "--outdir", "{outdir}", "{input}"]
      output_naming: input_stem

Placeholders are substituted per argument, so a path always lands in
exactly one argv slot no matter what characters it contains.

``{profile_uri}`` is a file:// URI for a scratch directory private to
the job. LibreOffice keeps its user profile there; two instances sharing
the default profile lock each other out, so concurrent document jobs each
get their own.
"""

from __future__ import annotations

import string
from pathlib import Path
from typing import Dict, List, Literal

from pydantic import BaseModel, Field, field_validator

PLACEHOLDERS = frozenset({"input", "output", "outdir", "format", "profile_uri"})


def _profile_dir(input_path: Path, output_path: Path) -> Path:
    return output_path.parent / f"{input_path.stem}.profile"


class ToolProfile(BaseModel):
    """Command template for one external tool."""

    binary: str
    args: List[str]
    # "explicit": the tool writes where {output} says.
    # "input_stem": the tool picks <outdir>/<input stem>.<format> itself.
    output_naming: Literal["explicit", "input_stem"] = "explicit"
    install_hint: str = ""

    @field_validator("args")
    @classmethod
    def _check_placeholders(cls, args: List[str]) -> List[str]:
        seen = set()
        for arg in args:
            for _, name, _, _ in string.Formatter().parse(arg):
                if name is None:
                    continue
                if name not in PLACEHOLDERS:
                    raise ValueError(f"Unknown placeholder '{{{name}}}' in '{arg}'")
                seen.add(name)
        if "input" not in seen:
            raise ValueError("Command template must reference {input}")
        return args

    @property
    def name(self) -> str:
        return Path(self.binary).name

    def build_argv(self, input_path: Path, output_path: Path, output_format: str) -> List[str]:
        values: Dict[str, str] = {
            "input": str(input_path),
            "output": str(output_path),
            "outdir": str(output_path.parent),
            "format": output_format,
            "profile_uri": _profile_dir(input_path, output_path).resolve().as_uri(),
        }
        return [self.binary] + [arg.format_map(values) for arg in self.args]

    def candidate_outputs(
        self, input_path: Path, output_path: Path, output_format: str
    ) -> List[Path]:
        """Expected output first, then any alternate the tool may choose."""
        candidates = [output_path]
        if self.output_naming == "input_stem":
            candidates.append(output_path.parent / f"{input_path.stem}.{output_format}")
        return candidates

    def scratch_dirs(self, input_path: Path, output_path: Path) -> List[Path]:
        """Directories the tool may create for itself during the run."""
        if any("{profile_uri}" in arg for arg in self.args):
            return [_profile_dir(input_path, output_path)]
        return []


def _default_transcoder() -> ToolProfile:
    return ToolProfile(
        binary="ffmpeg",
        args=["-y", "-i", "{input}", "{output}"],
        install_hint="apt install ffmpeg",
    )


def _default_document() -> ToolProfile:
    return ToolProfile(
        binary="libreoffice",
        args=[
            "-env:UserInstallation={profile_uri}",
            "--headless", "--convert-to", "{format}", "--outdir", "{outdir}", "{input}",
        ],
        output_naming="input_stem",
        install_hint="apt install libreoffice-writer",
    )


class ToolProfiles(BaseModel):
    """The tools.yaml schema."""

    version: int = 1
    transcoder: ToolProfile = Field(default_factory=_default_transcoder)
    document: ToolProfile = Field(default_factory=_default_document)

    def all(self) -> Dict[str, ToolProfile]:
        return {"transcoder": self.transcoder, "document": self.document}
