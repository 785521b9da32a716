# Text -> numeric feature matrix

from .hashing import HashingVectorizer
from .normalizer import NormalizationStats, apply_normalizer, fit_normalizer
from .pipeline import FeatureConfig, FeaturePipeline, FittedPipeline, create_pipeline_factory, split_config
from .tokenizer import Tokenizer, TokenizerOptions
from .vocabulary import IdfTable, Vocabulary, build_vocabulary, compute_idf, document_frequencies, tfidf_matrix, weight

__all__ = [
    "HashingVectorizer",
    "NormalizationStats",
    "apply_normalizer",
    "fit_normalizer",
    "FeatureConfig",
    "FeaturePipeline",
    "FittedPipeline",
    "create_pipeline_factory",
    "split_config",
    "Tokenizer",
    "TokenizerOptions",
    "IdfTable",
    "Vocabulary",
    "build_vocabulary",
    "compute_idf",
    "document_frequencies",
    "tfidf_matrix",
    "weight",
]
