"""
两阶段 AI 分析流水线测试
"""

import json

import pytest

from content_factory.analysis.pipeline import (
    LATEST_ANALYSIS_KEY,
    AnalysisService,
    SourceArticle,
    build_article_payload,
    compute_stats,
    deep_analyze_articles,
    generate_smart_topic_insights,
    generate_word_cloud,
)
from content_factory.intel.wechat_search import WechatArticle, WechatSearchClient
from content_factory.utils.errors import AIServiceError, ValidationError
from tests.conftest import FakeChatClient, json_transport, request_json

SUMMARIES = {
    "summaries": [
        {"index": 1, "keywords": ["AI", "写作"], "targetAudience": "职场新人", "scenario": "通勤", "painPoint": "效率"},
        {"index": 2, "keywords": ["AI", "工具"], "targetAudience": "宝妈", "scenario": "睡前", "painPoint": "时间"},
    ]
}

INSIGHTS = {
    "insights": [
        {"title": "低分洞察", "description": "d", "confidence": 72},
        {"title": "高分洞察", "description": "d", "confidence": 90},
        {"title": "无分洞察", "description": "d"},
    ]
}


def _source(title, reads, likes, content="正文"):
    return SourceArticle(title=title, content=content, likes=likes, reads=reads, url="https://a")


class TestSourceArticle:
    """源文章转换"""

    def test_from_wechat_defaults(self):
        article = SourceArticle.from_wechat(WechatArticle(title="", content="", digest=""))
        assert article.title == "无标题"
        assert article.content == "无内容"
        assert article.url == "#"
        assert article.author == "未知作者"
        assert article.summary == ""

    def test_from_wechat_summary_from_content(self):
        article = SourceArticle.from_wechat(WechatArticle(title="t", content="x" * 300))
        assert article.summary == "x" * 200 + "..."


class TestStatsAndPayload:
    """统计与请求数据"""

    def test_compute_stats(self):
        stats = compute_stats([_source("a", 1000, 50), _source("b", 3000, 150)])
        assert stats == {"totalArticles": 2, "avgReads": 2000, "avgLikes": 100, "avgEngagement": "5.0%"}

    def test_compute_stats_empty(self):
        assert compute_stats([]) == {"totalArticles": 0, "avgReads": 0, "avgLikes": 0, "avgEngagement": "0%"}

    def test_payload_truncates_content(self):
        payload = build_article_payload([_source("a", 0, 5, content="字" * 5000), {"title": "b", "reads": 200, "likes": 3}])
        assert len(payload[0]["content"]) == 3000
        assert payload[0]["engagement"] == "0"
        assert payload[1]["index"] == 2
        assert payload[1]["engagement"] == "1.5"

    def test_word_cloud(self):
        cloud = generate_word_cloud(SUMMARIES["summaries"])
        assert cloud[0] == {"word": "AI", "count": 2, "size": 48}
        assert {c["word"] for c in cloud} == {"AI", "写作", "工具"}
        assert cloud[-1]["size"] == 44


class TestAnalysisStages:
    """阶段 1 / 阶段 2"""

    @pytest.mark.asyncio
    async def test_deep_analysis_parses_fenced_json(self):
        client = FakeChatClient([f"```json\n{json.dumps(SUMMARIES, ensure_ascii=False)}\n```"])
        summaries = await deep_analyze_articles([_source("a", 100, 1)], client)

        assert len(summaries) == 2
        assert client.calls[0]["temperature"] == 0.3

    @pytest.mark.asyncio
    async def test_deep_analysis_invalid_json(self):
        client = FakeChatClient(["这不是JSON"])
        with pytest.raises(AIServiceError, match="深度文章分析失败"):
            await deep_analyze_articles([_source("a", 100, 1)], client)

    @pytest.mark.asyncio
    async def test_deep_analysis_drops_non_object_items(self):
        """模型混入字符串条目时只保留对象"""
        data = {"summaries": ["多余的说明", *SUMMARIES["summaries"], 3]}
        client = FakeChatClient([json.dumps(data, ensure_ascii=False)])
        summaries = await deep_analyze_articles([_source("a", 100, 1)], client)

        assert [s["index"] for s in summaries] == [1, 2]

    @pytest.mark.asyncio
    async def test_deep_analysis_empty_input_skips_model(self):
        client = FakeChatClient()
        assert await deep_analyze_articles([], client) == []
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_insights_sorted_by_confidence(self):
        client = FakeChatClient([json.dumps(INSIGHTS, ensure_ascii=False)])
        insights = await generate_smart_topic_insights(SUMMARIES["summaries"], compute_stats([]), client)

        assert [i["title"] for i in insights] == ["高分洞察", "低分洞察", "无分洞察"]
        assert client.calls[0]["temperature"] == 0.4

    @pytest.mark.asyncio
    async def test_insights_drop_non_object_items(self):
        data = {"insights": ["洞察如下", *INSIGHTS["insights"], None]}
        client = FakeChatClient([json.dumps(data, ensure_ascii=False)])
        insights = await generate_smart_topic_insights(SUMMARIES["summaries"], {}, client)

        assert [i["title"] for i in insights] == ["高分洞察", "低分洞察", "无分洞察"]

    @pytest.mark.asyncio
    async def test_insights_truncated_to_ten(self):
        many = {"insights": [{"title": f"t{i}", "description": "d", "confidence": 80} for i in range(14)]}
        client = FakeChatClient([json.dumps(many)])
        insights = await generate_smart_topic_insights(SUMMARIES["summaries"], {}, client)
        assert len(insights) == 10

    @pytest.mark.asyncio
    async def test_insights_invalid_json(self):
        client = FakeChatClient(["[1, 2]"])
        with pytest.raises(AIServiceError, match="智能选题洞察生成失败"):
            await generate_smart_topic_insights(SUMMARIES["summaries"], {}, client)


class TestAnalysisService:
    """完整分析流程"""

    @pytest.fixture
    def search_client(self, search_config):
        def handler(request):
            body = request_json(request)
            assert body["period"] == 7
            if body["kw"] == "冷门":
                return 200, {"code": 0, "data": []}
            return 200, {"code": 0, "total": 50, "data": [
                {"title": "文章一", "read": 1000, "praise": 10, "wx_name": "号"},
                {"title": "文章二", "read": 3000, "praise": 90, "wx_name": "号"},
                {"title": "文章三", "read": 5000, "praise": 20, "wx_name": "号"},
            ]}

        return WechatSearchClient(search_config, transport=json_transport(handler))

    @pytest.mark.asyncio
    async def test_analyze_keyword(self, search_client, local_store, article_store):
        chat = FakeChatClient([json.dumps(SUMMARIES, ensure_ascii=False), json.dumps(INSIGHTS, ensure_ascii=False)])
        service = AnalysisService(chat, search_client, local_store, article_store)

        result = await service.analyze_keyword("  AI写作  ", count=2)

        assert result["searchKeyword"] == "AI写作"
        assert result["searchTotal"] == 50
        assert [a["title"] for a in result["articles"]] == ["文章一", "文章二"]
        assert result["stats"]["avgReads"] == 2000
        assert result["insights"][0]["title"] == "高分洞察"
        assert service.get_latest_analysis() == local_store.get(LATEST_ANALYSIS_KEY)
        assert service.get_latest_analysis()["analysisTime"] == result["analysisTime"]

        history = article_store.get_search_history()
        assert history[0].keyword == "AI写作"
        assert history[0].result_count == 2

    @pytest.mark.asyncio
    async def test_analyze_keyword_no_articles(self, search_client, local_store, article_store):
        chat = FakeChatClient()
        service = AnalysisService(chat, search_client, local_store, article_store)

        result = await service.analyze_keyword("冷门")

        assert result["articles"] == []
        assert result["message"] == "未找到相关文章，请尝试其他关键词"
        assert chat.calls == []
        assert service.get_latest_analysis() is None

    @pytest.mark.asyncio
    async def test_analyze_keyword_requires_keyword(self, search_client, local_store, article_store):
        service = AnalysisService(FakeChatClient(), search_client, local_store, article_store)
        with pytest.raises(ValidationError):
            await service.analyze_keyword("   ")
