from .imagenet import load_class_labels, fetch_class_labels, predict_top_k_labels

__all__ = ["load_class_labels", "fetch_class_labels", "predict_top_k_labels"]
