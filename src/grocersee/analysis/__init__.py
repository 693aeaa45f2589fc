"""Detection analysis: features, clustering, focus and messages."""

from grocersee.analysis.clustering import ClusterAssignment, KMeansClusterer, KMeansResult, kmeans, select_k
from grocersee.analysis.features import FeatureBuilder, FeatureWeights
from grocersee.analysis.focus import FocusAnalyzer
from grocersee.analysis.messages import MessageGenerator

__all__ = [
    "ClusterAssignment",
    "FeatureBuilder",
    "FeatureWeights",
    "FocusAnalyzer",
    "KMeansClusterer",
    "KMeansResult",
    "MessageGenerator",
    "kmeans",
    "select_k",
]
