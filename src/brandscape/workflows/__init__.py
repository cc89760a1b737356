"""Workflow definitions for Brandscape."""

from .brand_pipeline import BrandPipeline

__all__ = ["BrandPipeline"]
