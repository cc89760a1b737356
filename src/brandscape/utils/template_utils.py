"""Utilities for loading the YAML prompt templates shipped with the stage experts."""

import os
import logging
from pathlib import Path
from typing import Any, Dict, Union

import yaml
from langchain_core.prompts import PromptTemplate

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).resolve().parent.parent / "agents" / "prompts"


def load_yaml_template(template_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a YAML template from file.

    Args:
        template_path: Path to the YAML template file

    Returns:
        Dictionary containing the loaded template

    Raises:
        FileNotFoundError: If the template does not exist
        ValueError: If the file does not hold a template mapping
    """
    with open(template_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict) or "template" not in data:
        raise ValueError(f"{template_path} is not a prompt template")
    return data


def load_prompt_template(template_path: Union[str, Path]) -> PromptTemplate:
    """Build a ``PromptTemplate`` from a ``_type: prompt`` YAML file."""
    data = load_yaml_template(template_path)
    return PromptTemplate(
        template=data["template"],
        input_variables=list(data.get("input_variables") or []),
    )


def load_stage_prompts(stage: str, prompts_dir: Union[str, Path, None] = None) -> Dict[str, PromptTemplate]:
    """
    Load every template in a stage's prompt directory, keyed by file stem.

    Args:
        stage: Directory name under ``agents/prompts`` (e.g. ``name_generation``)
        prompts_dir: Override for the prompts root

    Returns:
        Mapping such as ``{"system": PromptTemplate, "human": PromptTemplate}``
    """
    stage_dir = Path(prompts_dir or PROMPTS_DIR) / stage
    prompts = {}
    for name in sorted(os.listdir(stage_dir)):
        if name.endswith((".yaml", ".yml")):
            prompts[Path(name).stem] = load_prompt_template(stage_dir / name)
    if not prompts:
        raise FileNotFoundError(f"No prompt templates found in {stage_dir}")
    logger.debug(f"Loaded prompts {sorted(prompts)} for stage {stage}")
    return prompts
