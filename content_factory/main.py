"""
Content Factory 内容工厂 - CLI 主入口

功能：
- 选题分析：关键词搜索 → AI 深度分析 → 选题洞察
- 对标研究：公众号 / 小红书搜索、作者爆款统计、账号评估、选题市场分析
- 内容创作：单篇 / 批量生成文章（配图 + 封面），保存草稿
- 发布：草稿发布到公众号、查询发布状态

使用方法：
    content-factory analyze "AI写作"       # 分析关键词并生成选题洞察
    content-factory topics --refresh       # 同步最新分析为创作选题
    content-factory generate -i 1          # 按第 1 个选题生成文章
    content-factory publish <草稿ID> --appid wx123
    content-factory --help                 # 查看帮助
"""

import asyncio
from pathlib import Path

import click
import httpx
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from content_factory.utils.error_handler import ErrorHandler
from content_factory.utils.errors import ContentFactoryError

# 终端输出美化
console = Console()

API_PROVIDERS = ["openrouter", "siliconflow", "wechat_publish", "wechat_search", "xiaohongshu_search"]


def _run(coro):
    """
    执行协程，业务异常打印后以非零状态退出

    异常经 ErrorHandler 分类，输出用户提示和建议操作，并记入最近错误日志。
    """
    context = getattr(coro, "__qualname__", "")
    try:
        return asyncio.run(coro)
    except (ContentFactoryError, httpx.HTTPError) as e:
        enhanced = ErrorHandler.capture(e, context=context)
        console.print(f"\n[bold red]❌ 执行失败: {enhanced.technical_message}[/bold red]")
        lines = [f"[bold]{enhanced.user_message}[/bold]"]
        lines += [f"• {action}" for action in enhanced.suggested_actions]
        if enhanced.can_retry:
            lines.append("[dim]该错误可重试[/dim]")
        console.print(Panel("\n".join(lines), title="建议操作", border_style="yellow"))
        raise SystemExit(1) from e


def _truncate(text: str, length: int = 40) -> str:
    text = text or ""
    return text if len(text) <= length else text[:length] + "..."


def _resolve_topic(title: str, index: int) -> dict:
    """--title 优先，否则取选题历史中的第 index 个（从 1 开始）"""
    from content_factory.factory.topic_sync import TopicSync
    from content_factory.intel.utils import generate_id

    if title:
        return {"id": generate_id(), "title": title, "description": title}

    topics = TopicSync().get_topic_history()
    if not topics:
        raise click.UsageError("暂无选题，请先运行 analyze 和 topics --refresh，或使用 --title 指定")
    if not 1 <= index <= len(topics):
        raise click.UsageError(f"选题序号超出范围（1-{len(topics)}）")
    return topics[index - 1]


def _save_article(article) -> Path:
    """文章写入 output/日期/标题/article.md"""
    from content_factory.intel.utils import create_article_dir

    article_dir = create_article_dir(article.title)
    path = article_dir / "article.md"
    path.write_text(article.content, encoding="utf-8")
    return path


@click.group()
@click.version_option(version="1.0.0", prog_name="Content Factory")
def cli():
    """
    🏭 Content Factory 内容工厂

    公众号选题分析、文章创作与发布。

    \b
    快速开始：
        content-factory validate              # 检查配置
        content-factory analyze "AI写作"       # 分析关键词
        content-factory topics --refresh      # 同步选题
        content-factory generate -i 1         # 生成文章
    """
    pass


# ═══════════════════════════════════════════════════════════════════════════════
# 选题分析与对标研究
# ═══════════════════════════════════════════════════════════════════════════════

@cli.command()
@click.argument('keyword')
@click.option('--count', '-n', default=5, show_default=True, help='分析文章数')
def analyze(keyword, count):
    """🔍 关键词分析 - 搜索 + AI 深度分析 + 选题洞察"""
    console.print(Panel.fit(
        f"[bold cyan]🔍 选题分析[/bold cyan]\n[dim]关键词: {keyword} | 文章数: {count}[/dim]",
        border_style="cyan"
    ))

    from content_factory.analysis.pipeline import AnalysisService

    result = _run(AnalysisService().analyze_keyword(keyword, count))

    stats = result["stats"]
    console.print(
        f"\n[bold]统计:[/bold] 文章 {stats['totalArticles']} 篇 | 平均阅读 {stats['avgReads']} | "
        f"平均点赞 {stats['avgLikes']} | 互动率 {stats['avgEngagement']}"
    )

    if result.get("message"):
        console.print(f"\n[yellow]⚠️ {result['message']}[/yellow]")
        return

    table = Table(title="选题洞察", show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim")
    table.add_column("标题", style="green")
    table.add_column("置信度")
    table.add_column("描述")
    for i, insight in enumerate(result["insights"], 1):
        table.add_row(
            str(i),
            insight.get("title", ""),
            str(insight.get("confidence", "-")),
            _truncate(insight.get("description", ""), 60),
        )
    console.print(table)
    console.print("\n[dim]运行 content-factory topics --refresh 将洞察同步为创作选题[/dim]")


@cli.command()
@click.argument('keyword')
@click.option('--period', '-p', default=7, show_default=True, help='时间范围（天）')
@click.option('--page', default=1, show_default=True, help='页码')
@click.option('--limit', '-n', default=20, show_default=True, help='显示条数')
def search(keyword, period, page, limit):
    """📰 公众号文章搜索"""
    from content_factory.intel.wechat_search import WechatSearchClient

    result = _run(WechatSearchClient().search_articles(keyword, period=period, page=page))

    table = Table(title=f"公众号搜索: {keyword}（共 {result.total} 条）", show_header=True, header_style="bold cyan")
    table.add_column("标题", style="green")
    table.add_column("公众号")
    table.add_column("阅读", justify="right")
    table.add_column("点赞", justify="right")
    table.add_column("发布时间")
    for article in result.articles[:limit]:
        table.add_row(
            _truncate(article.title), article.wx_name, str(article.reads), str(article.likes),
            article.publish_time_str,
        )
    console.print(table)


@cli.command()
@click.argument('keyword')
@click.option('--page', default=1, show_default=True, help='页码')
@click.option(
    '--sort',
    type=click.Choice(['general', 'popularity_descending', 'time_descending']),
    default='general',
    help='排序方式'
)
@click.option('--hot', is_flag=True, help='按互动量排序取热门笔记')
def xhs(keyword, page, sort, hot):
    """📕 小红书笔记搜索"""
    from content_factory.intel.xiaohongshu_search import XiaohongshuSearchClient

    client = XiaohongshuSearchClient()
    notes = _run(client.get_hot_notes(keyword) if hot else client.search_notes(keyword, page=page, sort=sort))

    table = Table(title=f"小红书: {keyword}", show_header=True, header_style="bold cyan")
    table.add_column("标题", style="green")
    table.add_column("作者")
    table.add_column("点赞", justify="right")
    table.add_column("收藏", justify="right")
    table.add_column("评论", justify="right")
    for note in notes:
        table.add_row(_truncate(note.title), note.author, str(note.likes), str(note.collects), str(note.comments))
    console.print(table)


@cli.command()
@click.argument('name')
def author(name):
    """✍️ 作者爆款统计"""
    from content_factory.intel.wechat_search import WechatSearchClient

    stats = _run(WechatSearchClient().analyze_author_viral_stats(name))
    viral = stats["viralStats"]
    console.print(Panel.fit(
        f"[bold cyan]✍️ {name}[/bold cyan]\n"
        f"文章总数: {stats['totalArticles']}\n"
        f"阅读 1万+: {viral['reads10k']} | 5万+: {viral['reads50k']} | 10万+: {viral['reads100k']}",
        border_style="cyan"
    ))


@cli.command()
@click.argument('name')
@click.option('--save', '-s', is_flag=True, help='保存为对标公众号')
@click.option('--tag', '-t', multiple=True, help='标签（可多次指定）')
def account(name, save, tag):
    """🏷️ 公众号评估 - 账号数据 + 对标适合度评分"""
    from content_factory.intel.wechat_account import (
        WechatAccountClient,
        calculate_suitability_score,
        get_suitability_level,
    )

    info = _run(WechatAccountClient().get_account_info(name))
    score = calculate_suitability_score(info)
    level = get_suitability_level(score)

    table = Table(title=f"公众号: {info.name}", show_header=False)
    table.add_column("项目", style="bold")
    table.add_column("数值")
    table.add_row("粉丝数", str(info.fans))
    table.add_row("极致了指数", str(info.jzlIndex))
    table.add_row("头条平均阅读", str(info.avgTopRead))
    table.add_row("头条平均点赞", str(info.avgTopZan))
    table.add_row("近一周发文", str(info.weekArticles))
    table.add_row("互动率", f"{info.engagementRate}%")
    table.add_row("活跃度", info.activityLevel)
    table.add_row("适合度评分", f"[{level['color']}]{score} - {level['level']}[/{level['color']}]")
    console.print(table)
    console.print(f"[dim]{level['description']}[/dim]")

    if save:
        from content_factory.intel.article_store import ArticleStore

        ArticleStore().add_target_account(info.to_dict(), score, list(tag))
        console.print("[green]✅ 已保存为对标公众号[/green]")


@cli.command()
@click.argument('article_ids', nargs=-1, type=int)
@click.option('--url', '-u', multiple=True, help='先收藏对标文章（公众号文章链接，可多次指定）')
@click.option('--refresh', '-r', is_flag=True, help='忽略已有分析重新计算')
@click.option('--sync', is_flag=True, help='分析后同步为创作选题')
def market(article_ids, url, refresh, sync):
    """📊 选题市场分析 - 对标文章的近半年市场热度"""
    from content_factory.intel.article_store import ArticleStore
    from content_factory.intel.topic_market import TopicMarketAnalyzer

    store = ArticleStore()
    ids = list(article_ids)

    if url:
        from content_factory.intel.wechat_detail import WechatDetailClient

        details = _run(WechatDetailClient().batch_get_article_details(list(url)))
        for detail in details:
            article = store.add_target_article({
                "title": detail.title,
                "url": detail.articleUrl,
                "content": detail.content,
                "html": detail.html,
                "publish_time": detail.publishTime,
                "author_name": detail.nickname,
                "avatar": detail.avatar,
            })
            ids.append(article.id)
            console.print(f"[green]✅ 已收藏: {detail.title}[/green]")

    if not ids:
        table = Table(title="对标文章", show_header=True, header_style="bold cyan")
        table.add_column("ID", style="dim")
        table.add_column("标题", style="green")
        table.add_column("公众号")
        for article in store.get_target_articles():
            table.add_row(str(article.id), _truncate(article.title), article.author_name or "")
        console.print(table)
        console.print("[dim]指定文章 ID 或 --url 进行分析[/dim]")
        return

    results = _run(TopicMarketAnalyzer(store=store).analyze_articles(ids, refresh))

    table = Table(title="选题市场分析", show_header=True, header_style="bold cyan")
    table.add_column("文章", style="green")
    table.add_column("关键词")
    table.add_column("相关文章", justify="right")
    table.add_column("平均阅读", justify="right")
    table.add_column("竞争")
    table.add_column("机会")
    for item in results:
        analysis = item["analysis"]
        table.add_row(
            _truncate(item["sourceArticle"]["title"], 30),
            "、".join(analysis["keywords"]),
            str(analysis["sixMonthsData"]["articleCount"]),
            str(analysis["sixMonthsData"]["avgReads"]),
            analysis["marketAssessment"]["competition"],
            analysis["marketAssessment"]["opportunity"],
        )
    console.print(table)
    for item in results:
        console.print(f"[dim]• {item['analysis']['marketAssessment']['suggestion']}[/dim]")

    if sync:
        synced = store.sync_benchmark_topics([item["sourceArticle"]["id"] for item in results])
        console.print(f"[green]✅ {synced['message']}[/green]")


# ═══════════════════════════════════════════════════════════════════════════════
# 内容创作
# ═══════════════════════════════════════════════════════════════════════════════

def _creation_options(func):
    """generate / batch 共用的创作参数"""
    options = [
        click.option('--title', '-t', default='', help='直接指定选题标题'),
        click.option('--index', '-i', default=1, show_default=True, help='选题历史中的序号'),
        click.option('--length', '-l', default=None, help='文章长度（如 1000-1500）'),
        click.option('--style', default=None, help='写作风格'),
        click.option('--image-style', default=None, help='配图风格（auto / business / creative ...）'),
        click.option('--image-ratio', default=None, help='配图比例（如 4:3）'),
        click.option('--inspiration', default='', help='原创灵感'),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_params(title, index, length, style, image_style, image_ratio, inspiration):
    from content_factory.config import get_settings
    from content_factory.factory.generator import CreationParams

    creation = get_settings().creation
    return CreationParams(
        topic=_resolve_topic(title, index),
        length=length or creation.length,
        style=style or creation.style,
        image_style=image_style or creation.image_style,
        image_ratio=image_ratio or creation.image_ratio,
        original_inspiration=inspiration,
    )


@cli.command()
@_creation_options
@click.option('--no-draft', is_flag=True, help='不保存草稿')
def generate(title, index, length, style, image_style, image_ratio, inspiration, no_draft):
    """✍️ 生成单篇文章"""
    params = _build_params(title, index, length, style, image_style, image_ratio, inspiration)
    console.print(Panel.fit(
        f"[bold cyan]✍️ 文章创作[/bold cyan]\n[dim]选题: {params.topic['title']} | 长度: {params.length}[/dim]",
        border_style="cyan"
    ))

    from content_factory.factory.generator import ArticleGenerator

    article = _run(ArticleGenerator().generate_single_article(params))
    path = _save_article(article)

    console.print("\n[bold green]✅ 生成完成！[/bold green]")
    console.print(f"   标题: {article.title}")
    console.print(f"   字数: {article.word_count} | 阅读时长: {article.reading_time} 分钟 | 配图: {len(article.images)} 张")
    console.print(f"   封面: {(article.cover or {}).get('url', '无')}")
    console.print(f"   文件: {path}")

    if not no_draft:
        from content_factory.factory.draft_store import DraftStore

        draft = DraftStore().save_to_draft(article)
        console.print(f"   草稿: {draft.id}")


@cli.command()
@_creation_options
@click.option('--count', '-n', default=3, show_default=True, help='生成篇数')
def batch(title, index, length, style, image_style, image_ratio, inspiration, count):
    """📚 批量生成文章（同一选题，不同角度）"""
    params = _build_params(title, index, length, style, image_style, image_ratio, inspiration)
    console.print(Panel.fit(
        f"[bold cyan]📚 批量创作[/bold cyan]\n[dim]选题: {params.topic['title']} | 篇数: {count}[/dim]",
        border_style="cyan"
    ))

    from content_factory.factory.draft_store import DraftStore
    from content_factory.factory.generator import ArticleGenerator

    def on_progress(percent: float):
        console.print(f"[dim]进度: {percent:.0f}%[/dim]")

    articles = _run(ArticleGenerator().generate_batch_articles(params.topic, params, count, on_progress))

    store = DraftStore()
    table = Table(title=f"生成结果（{len(articles)}/{count}）", show_header=True, header_style="bold cyan")
    table.add_column("草稿ID", style="dim")
    table.add_column("标题", style="green")
    table.add_column("字数", justify="right")
    for article in articles:
        _save_article(article)
        draft = store.save_to_draft(article)
        table.add_row(draft.id, article.title, str(article.word_count))
    console.print(table)


# ═══════════════════════════════════════════════════════════════════════════════
# 草稿与发布
# ═══════════════════════════════════════════════════════════════════════════════

@cli.command()
@click.option('--status', '-s', type=click.Choice(['draft', 'published', 'archived']), default=None, help='按状态过滤')
@click.option('--delete', '-d', 'delete_id', default='', help='删除指定草稿')
@click.option('--archive', '-a', 'archive_id', default='', help='归档指定草稿')
@click.option('--clear', is_flag=True, help='清空所有草稿')
def drafts(status, delete_id, archive_id, clear):
    """🗂️ 草稿管理"""
    from content_factory.factory.draft_store import DraftStore

    store = DraftStore()

    if clear:
        removed = store.clear_drafts()
        console.print(f"[green]✅ 已清空 {removed} 个草稿[/green]")
        return
    if delete_id:
        if store.delete_draft(delete_id):
            console.print(f"[green]✅ 已删除草稿 {delete_id}[/green]")
        else:
            console.print(f"[red]❌ 草稿不存在: {delete_id}[/red]")
        return
    if archive_id:
        if store.update_draft(archive_id, status="archived"):
            console.print(f"[green]✅ 已归档草稿 {archive_id}[/green]")
        else:
            console.print(f"[red]❌ 草稿不存在: {archive_id}[/red]")
        return

    table = Table(title="草稿", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim")
    table.add_column("标题", style="green")
    table.add_column("状态")
    table.add_column("更新时间")
    for draft in store.get_drafts(status):
        table.add_row(
            draft.id, _truncate(draft.title), draft.status,
            draft.updated_at.strftime("%Y-%m-%d %H:%M") if draft.updated_at else "",
        )
    console.print(table)

    stats = store.get_stats()
    console.print(
        f"[dim]共 {stats['totalDrafts']} 个 | 草稿 {stats['draftDrafts']} | "
        f"已发布 {stats['publishedDrafts']} | 已归档 {stats['archivedDrafts']}[/dim]"
    )


@cli.command()
@click.argument('draft_id')
@click.option('--appid', required=True, help='公众号 AppID（content-factory accounts 查看）')
@click.option('--type', 'article_type', type=click.Choice(['news', 'newspic']), default='news', help='文章类型')
def publish(draft_id, appid, article_type):
    """📤 发布草稿到公众号"""
    console.print(Panel.fit("📤 发布到公众号", style="bold cyan"))

    from content_factory.factory.publisher import WechatPublisher

    result = _run(WechatPublisher().publish_draft(draft_id, appid, article_type))
    if result["success"]:
        data = result["data"]
        console.print(f"\n[bold green]✅ {result['message']}[/bold green]")
        console.print(f"   发布ID: {data.get('publicationId')}")
        console.print(f"   状态: {data.get('status', '-')}")
    else:
        console.print(f"\n[bold red]❌ {result['error']}（{result['status']}）[/bold red]")
        for detail in result.get("details", []):
            console.print(f"  • {detail}")
        raise SystemExit(1)


@cli.command(name='batch-publish')
@click.argument('draft_ids', nargs=-1, required=True)
@click.option('--appid', required=True, help='公众号 AppID')
@click.option('--type', 'article_type', type=click.Choice(['news', 'newspic']), default='news', help='文章类型')
def batch_publish(draft_ids, appid, article_type):
    """📦 批量发布草稿"""
    from content_factory.factory.publisher import WechatPublisher

    summary = _run(WechatPublisher().batch_publish(list(draft_ids), appid, article_type))

    table = Table(title="批量发布", show_header=True, header_style="bold cyan")
    table.add_column("草稿ID", style="dim")
    table.add_column("状态")
    table.add_column("发布ID / 错误")
    for item in summary["results"]:
        ok = item["status"] == "success"
        table.add_row(
            item["draftId"],
            "[green]成功[/green]" if ok else "[red]失败[/red]",
            (item.get("publicationId") or "") if ok else item.get("error", ""),
        )
    console.print(table)
    console.print(f"\n批量发布完成：成功 {summary['successCount']} 个，失败 {summary['failedCount']} 个")


@cli.command()
@click.argument('publication_id')
def status(publication_id):
    """🔄 查询发布状态"""
    from content_factory.factory.publisher import WechatPublisher

    data = _run(WechatPublisher().get_publish_status(publication_id))
    table = Table(title=f"发布状态: {publication_id}", show_header=False)
    table.add_column("字段", style="bold")
    table.add_column("值")
    for key, value in data.items():
        table.add_row(str(key), str(value))
    console.print(table)


@cli.command()
def accounts():
    """👥 已授权的公众号列表"""
    from content_factory.factory.publisher import WechatPublisher

    items = _run(WechatPublisher().get_wechat_accounts())

    table = Table(title="公众号", show_header=True, header_style="bold cyan")
    table.add_column("AppID", style="dim")
    table.add_column("名称", style="green")
    table.add_column("类型")
    for item in items:
        table.add_row(item.get("wechatAppid", ""), item.get("name", ""), str(item.get("type", "")))
    console.print(table)


# ═══════════════════════════════════════════════════════════════════════════════
# 选题、历史与缓存
# ═══════════════════════════════════════════════════════════════════════════════

@cli.command()
@click.option('--refresh', '-r', is_flag=True, help='从最新分析同步选题')
@click.option('--limit', '-n', default=20, show_default=True, help='显示条数')
def topics(refresh, limit):
    """💡 创作选题"""
    from content_factory.factory.topic_sync import TopicSync

    sync = TopicSync()
    if refresh:
        items = sync.refresh_topics()
        console.print(f"[green]✅ 同步完成，共 {len(items)} 个选题[/green]")
    else:
        items = sync.get_topic_history()
        if sync.has_new_analysis_data():
            console.print("[yellow]💡 有新的分析结果，使用 --refresh 同步[/yellow]")

    table = Table(title="选题", show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim")
    table.add_column("标题", style="green")
    table.add_column("置信度")
    table.add_column("描述")
    for i, topic in enumerate(items[:limit], 1):
        table.add_row(
            str(i), topic.get("title", ""), str(topic.get("confidence", "-")),
            _truncate(topic.get("description", ""), 50),
        )
    console.print(table)


@cli.command()
@click.option('--search', '-s', 'query', default='', help='按标题 / 内容 / 选题搜索')
@click.option('--page', '-p', default=1, show_default=True, help='页码')
@click.option('--export', '-e', 'export_path', default='', help='导出为 Markdown 文件')
@click.option('--id', 'history_id', default=None, help='只导出指定记录')
@click.option('--clear', is_flag=True, help='清空历史')
def history(query, page, export_path, history_id, clear):
    """📜 生成历史"""
    from content_factory.factory.content_cache import ContentHistory, LocalStore

    records = ContentHistory(LocalStore())

    if clear:
        records.clear_history()
        console.print("[green]✅ 历史记录已清空[/green]")
        return
    if export_path:
        Path(export_path).write_text(records.export_to_markdown(history_id), encoding="utf-8")
        console.print(f"[green]✅ 已导出到: {export_path}[/green]")
        return

    if query:
        items, footer = records.search_history(query), ""
    else:
        result = records.get_history_page(page)
        items = result["items"]
        footer = f"第 {page}/{max(result['pages'], 1)} 页，共 {result['total']} 条"

    table = Table(title="生成历史", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim")
    table.add_column("标题", style="green")
    table.add_column("字数", justify="right")
    table.add_column("耗时(ms)", justify="right")
    for item in items:
        table.add_row(item["id"], _truncate(item.get("title", "")), str(item.get("wordCount", 0)),
                      str(item.get("generationTime", 0)))
    console.print(table)
    if footer:
        console.print(f"[dim]{footer}[/dim]")


@cli.command(name='cache-clean')
@click.option('--days', default=7, show_default=True, help='选题保留天数')
def cache_clean(days):
    """🧹 清理过期缓存与选题"""
    console.print(Panel.fit("🧹 清理缓存", style="bold cyan"))

    from content_factory.factory.content_cache import ContentCache, LocalStore
    from content_factory.factory.topic_sync import TopicSync

    store = LocalStore()
    cache_removed = ContentCache(store).cleanup_expired_cache()
    topic_removed = TopicSync(store).cleanup_expired_topics(days)
    console.print(f"[green]✅ 清理了 {cache_removed} 条过期缓存，{topic_removed} 个过期选题[/green]")


# ═══════════════════════════════════════════════════════════════════════════════
# 工具命令
# ═══════════════════════════════════════════════════════════════════════════════

@cli.command(name='test-api')
@click.argument('provider', type=click.Choice(API_PROVIDERS + ['all']), default='all')
def test_api(provider):
    """🔗 测试 API 连接"""
    from content_factory.utils.api_tester import ApiTester

    tester = ApiTester()
    providers = API_PROVIDERS if provider == 'all' else [provider]

    async def run_all():
        return [(name, await tester.test(name)) for name in providers]

    table = Table(title="API 连接测试", show_header=True, header_style="bold cyan")
    table.add_column("服务", style="bold")
    table.add_column("结果")
    table.add_column("耗时(ms)", justify="right")
    table.add_column("消息")
    for name, result in _run(run_all()):
        table.add_row(
            name,
            "[green]✅ 成功[/green]" if result.success else "[red]❌ 失败[/red]",
            str(result.response_time_ms),
            result.message,
        )
    console.print(table)


@cli.command()
def config():
    """⚙️ 显示当前配置"""
    console.print(Panel.fit("⚙️ 当前配置", style="bold cyan"))

    from content_factory.config import get_config_status, get_settings

    s = get_settings()
    status_info = get_config_status(s)

    def configured(flag: bool) -> str:
        return '✅ 已配置' if flag else '❌ 未配置'

    console.print(f"\n[bold]配置来源:[/bold] {s.config_source}")
    console.print(f"[bold]配置文件:[/bold] {status_info['config_file']}")

    console.print("\n[bold]对话模型:[/bold]")
    console.print(f"  地址: {status_info['openrouter']['api_base']}")
    console.print(f"  模型: {status_info['openrouter']['model']}")
    console.print(f"  API Key: {configured(status_info['openrouter']['api_key_configured'])}")

    console.print("\n[bold]硅基流动:[/bold]")
    console.print(f"  配图模型: {status_info['siliconflow']['image_model']}")
    console.print(f"  API Key: {configured(status_info['siliconflow']['api_key_configured'])}")

    console.print("\n[bold]极致了:[/bold]")
    console.print(f"  公众号搜索: {configured(status_info['wechat_search']['api_key_configured'])}")
    console.print(f"  小红书搜索: {configured(status_info['xiaohongshu']['api_key_configured'])}")

    console.print("\n[bold]公众号发布:[/bold]")
    console.print(f"  地址: {status_info['wechat_publish']['api_base']}")
    console.print(f"  API Key: {configured(status_info['wechat_publish']['api_key_configured'])}")

    console.print("\n[bold]存储:[/bold]")
    console.print(f"  数据库: {status_info['storage']['db_url']}")
    console.print(f"  本地存储: {status_info['storage']['local_store']}")


@cli.command()
def validate():
    """✅ 验证配置"""
    console.print(Panel.fit("✅ 配置验证", style="bold cyan"))

    from content_factory.utils.config_validator import ConfigValidator

    validator = ConfigValidator()
    result = validator.validate()
    validator.print_report(result)

    if result.passed:
        console.print("\n[bold green]🎉 配置验证通过！[/bold green]")
    else:
        console.print("\n[bold red]⚠️ 配置存在问题，请修复后再运行[/bold red]")


if __name__ == "__main__":
    cli()
