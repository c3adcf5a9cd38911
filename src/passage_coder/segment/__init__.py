"""Passage segmentation and code management."""

from passage_coder.segment.codes import CodeManager, split_labels
from passage_coder.segment.segmenter import PassageSegmenter

__all__ = ["CodeManager", "PassageSegmenter", "split_labels"]
