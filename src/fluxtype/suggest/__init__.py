from fluxtype.suggest.gemini import SuggestionResult, asuggest_style, suggest_style

__all__ = ["SuggestionResult", "asuggest_style", "suggest_style"]
