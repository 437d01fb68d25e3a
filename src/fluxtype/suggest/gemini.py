"""
どこで: `src/fluxtype/suggest/gemini.py`。
何を: 自然言語のプロンプトから Gemini に設定パッチ（AI 操作可能なフィールドのみ）を提案させる。
なぜ: 外部サービスの失敗（ネットワーク・タイムアウト・不正 JSON・キー欠如）を結果オブジェクトに閉じ込め、
     呼び出し側が「成功時だけ適用する」以外を考えなくて済むようにするため。
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any

from google import genai
from google.genai import types

from fluxtype.core.runtime_config import RuntimeConfig, runtime_config
from fluxtype.core.settings import (
    FontFamily,
    MORPH_OPERATORS,
    NOISE_TYPES,
    TEXTURE_MODES,
    TypeSettings,
    coerce_field,
    field_name,
    settings_to_dict,
)

_logger = logging.getLogger(__name__)

# AI に触らせるフィールド（応答 JSON の camelCase 表記）。text と noiseSeed は含めない。
_NUMBER_FIELDS: tuple[str, ...] = (
    "fontSize",
    "letterSpacing",
    "lineHeight",
    "rotation",
    "skewX",
    "skewY",
    "morphRadius",
    "distortionX",
    "distortionY",
    "distortionStrength",
    "blurStdDev",
    "contrast",
    "numMetaballs",
    "metaballSpread",
    "metaballSpeed",
    "strokeWidth",
)
_COLOR_FIELDS: tuple[str, ...] = ("fillColor", "strokeColor", "backgroundColor")
_BOOL_FIELDS: tuple[str, ...] = ("showFill", "showStroke")
_ENUM_FIELDS: dict[str, tuple[str, ...]] = {
    "fontFamily": tuple(f.value for f in FontFamily),
    "morphOperator": MORPH_OPERATORS,
    "noiseType": NOISE_TYPES,
    "textureMode": TEXTURE_MODES,
}
REQUIRED_FIELDS: tuple[str, ...] = ("fontFamily", "distortionStrength", "blurStdDev", "contrast")

AI_CONTROLLABLE_FIELDS: frozenset[str] = frozenset(
    field_name(k) for k in (*_NUMBER_FIELDS, *_COLOR_FIELDS, *_BOOL_FIELDS, *_ENUM_FIELDS)
)
"""提案パッチに含めてよいフィールド（snake_case）。"""

PROMPT_TEMPLATE = """You are a creative coder specializing in generative typography.
Translate the following user description into a configuration object for an abstract type generator.

The user wants: "{prompt}"

Current configuration (JSON): {current}

Parameter constraints:
- fontSize: 40 to 200
- distortionX/Y: 0.001 (smooth) to 0.5 (chaos)
- distortionStrength: 0 to 200
- blurStdDev: 0 to 20
- contrast: 1 to 50 (Higher contrast + blur creates "gooey" liquid effects)
- textureMode: 'solid' (default), 'chrome' (metallic/shiny), 'glass' (transparent/refractive), 'neon' (glowing)
- morphRadius: 0 to 10
- numMetaballs: 0 to 15 (Use for "blobs", "bubbles", "floating", "lava", "goo")
- metaballSpread: 10 (tight) to 100 (loose)
- metaballSpeed: 0 (static) to 1 (fast flow)
- Colors should match the vibe, as #RRGGBB hex strings.

Return ONLY the JSON object matching the schema."""


def settings_schema() -> types.Schema:
    """応答 JSON のスキーマ（AI 操作可能なサブセット）を返す。"""

    props: dict[str, types.Schema] = {}
    for key, choices in _ENUM_FIELDS.items():
        props[key] = types.Schema(type=types.Type.STRING, enum=list(choices))
    for key in _NUMBER_FIELDS:
        props[key] = types.Schema(type=types.Type.NUMBER)
    for key in _COLOR_FIELDS:
        props[key] = types.Schema(type=types.Type.STRING)
    for key in _BOOL_FIELDS:
        props[key] = types.Schema(type=types.Type.BOOLEAN)
    return types.Schema(type=types.Type.OBJECT, properties=props, required=list(REQUIRED_FIELDS))


@dataclass(frozen=True, slots=True)
class SuggestionResult:
    """提案の結果。

    Attributes
    ----------
    patch : dict[str, Any]
        検証済みの部分パッチ（snake_case）。失敗時は空。
    error : str | None
        失敗理由。成功時は None。
    dropped : tuple[str, ...]
        応答に含まれていたが、対象外/不正値のため捨てたキー。
    """

    patch: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    dropped: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, reason: str) -> SuggestionResult:
        return cls(patch={}, error=str(reason))


def build_prompt(prompt: str, current: TypeSettings) -> str:
    """プロンプト本文を組み立てて返す。"""

    snapshot = settings_to_dict(current, camel_case=True)
    subset = {k: v for k, v in snapshot.items() if field_name(k) in AI_CONTROLLABLE_FIELDS}
    return PROMPT_TEMPLATE.format(prompt=prompt, current=json.dumps(subset, sort_keys=True))


def parse_suggestion(text: str) -> SuggestionResult:
    """応答 JSON を検証済みパッチへ変換して返す。

    Notes
    -----
    対象外のキー（text など）や不正値は個別に捨てる。JSON 自体が壊れている場合は失敗結果を返す。
    """

    try:
        payload = json.loads(text)
    except (TypeError, ValueError) as exc:
        _logger.warning("提案応答の JSON 解析に失敗しました: %s", exc)
        return SuggestionResult.failure(f"malformed response: {exc}")
    if not isinstance(payload, dict):
        _logger.warning("提案応答が object ではありません: %r", type(payload))
        return SuggestionResult.failure("malformed response: not an object")

    patch: dict[str, Any] = {}
    dropped: list[str] = []
    for key, value in payload.items():
        try:
            name = field_name(str(key))
        except ValueError:
            dropped.append(str(key))
            continue
        if name not in AI_CONTROLLABLE_FIELDS:
            dropped.append(str(key))
            continue
        try:
            patch[name] = coerce_field(name, value)
        except ValueError as exc:
            _logger.warning("提案値を無視します: %s=%r (%s)", key, value, exc)
            dropped.append(str(key))

    if dropped:
        _logger.info("提案から除外したキー: %s", ", ".join(sorted(dropped)))
    return SuggestionResult(patch=patch, error=None, dropped=tuple(dropped))


async def _aclose_client(client: Any) -> None:
    """`genai.Client` の非同期側（HTTP セッション）を閉じる。失敗はログに残して続行する。"""

    try:
        await client.aio.aclose()
    except Exception:
        _logger.warning("Gemini client のクローズに失敗しました", exc_info=True)


async def asuggest_style(
    prompt: str,
    current: TypeSettings,
    *,
    client: Any | None = None,
    config: RuntimeConfig | None = None,
) -> SuggestionResult:
    """Gemini に設定パッチを提案させる（非同期）。

    Parameters
    ----------
    prompt : str
        ユーザーの自然言語の指示。
    current : TypeSettings
        現在のスナップショット（文脈としてプロンプトへ埋め込む）。
    client : Any or None, optional
        `genai.Client` 互換オブジェクト。None なら設定の環境変数から API キーを読んで生成する。
    config : RuntimeConfig or None, optional
        None なら `runtime_config()`。

    Returns
    -------
    SuggestionResult
        失敗しても例外は投げず、`ok=False` の結果を返す。

    Notes
    -----
    リクエストは `suggestion.timeout_s` で打ち切る。タスクのキャンセルはそのまま伝播する。
    """

    if not str(prompt).strip():
        return SuggestionResult.failure("empty prompt")

    cfg = runtime_config() if config is None else config

    owned_client = client is None
    if client is None:
        api_key = os.environ.get(cfg.suggestion_api_key_env)
        if not api_key:
            _logger.error("API key missing: env=%s", cfg.suggestion_api_key_env)
            return SuggestionResult.failure("api key missing")
        try:
            client = genai.Client(api_key=api_key)
        except Exception as exc:
            _logger.exception("Gemini client の生成に失敗しました")
            return SuggestionResult.failure(f"client error: {exc}")

    generation_config = types.GenerateContentConfig(
        response_mime_type="application/json",
        response_schema=settings_schema(),
        temperature=cfg.suggestion_temperature,
    )
    try:
        response = await asyncio.wait_for(
            client.aio.models.generate_content(
                model=cfg.suggestion_model,
                contents=build_prompt(prompt, current),
                config=generation_config,
            ),
            timeout=cfg.suggestion_timeout_s,
        )
    except asyncio.TimeoutError:
        _logger.warning("Gemini generation timed out: timeout_s=%s", cfg.suggestion_timeout_s)
        return SuggestionResult.failure("timeout")
    except Exception as exc:
        _logger.error("Gemini generation failed: %s", exc)
        return SuggestionResult.failure(f"request failed: {exc}")
    finally:
        # 自前で生成した client だけを閉じる。
        if owned_client:
            await _aclose_client(client)

    text = getattr(response, "text", None)
    if not text:
        _logger.warning("Gemini の応答が空です")
        return SuggestionResult.failure("empty response")
    return parse_suggestion(text)


def suggest_style(
    prompt: str,
    current: TypeSettings,
    *,
    client: Any | None = None,
    config: RuntimeConfig | None = None,
) -> SuggestionResult:
    """`asuggest_style` の同期版。イベントループ外から呼ぶ。"""

    return asyncio.run(asuggest_style(prompt, current, client=client, config=config))


__all__ = [
    "AI_CONTROLLABLE_FIELDS",
    "SuggestionResult",
    "asuggest_style",
    "build_prompt",
    "parse_suggestion",
    "settings_schema",
    "suggest_style",
]
