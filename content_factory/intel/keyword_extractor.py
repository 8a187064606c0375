"""
Content Factory 内容工厂 - 标题关键词提取

功能：
- 从文章标题提取核心关键词（去标点、去停用词、按长度排序）
- 生成搜索关键词组合
- 判断标题主题类别并给出创作建议
"""

import re

# 停用词
STOP_WORDS = frozenset([
    '的', '了', '在', '是', '我', '有', '和', '就', '不', '人', '都', '一', '个', '上', '也', '很',
    '到', '说', '要', '去', '你', '会', '着', '没有', '看', '好', '自己', '这', '那', '她',
    '他', '它', '们', '吗', '呢', '啊', '呀', '哦', '吧', '啦', '呗', '呵', '哈', '嗯', '唉', '么',
])

# 主题类别 → 识别关键词
THEMES: dict[str, list[str]] = {
    '健康养生': ['健康', '养生', '疾病', '治疗', '保健', '中医', '西医', '营养', '运动', '减肥', '健身'],
    '职场发展': ['职场', '工作', '求职', '面试', '职业', '升职', '加薪', '创业', '管理', '领导'],
    '情感心理': ['情感', '心理', '恋爱', '婚姻', '家庭', '教育', '孩子', '亲子', '沟通', '关系'],
    '财经理财': ['理财', '投资', '股票', '基金', '买房', '保险', '贷款', '信用卡', '省钱', '赚钱'],
    '科技数码': ['科技', '数码', '手机', '电脑', 'APP', '软件', '编程', 'AI', '人工智能', '互联网'],
    '生活美食': ['美食', '菜谱', '旅游', '购物', '穿搭', '美妆', '生活', '家居', '装修', '宠物'],
    '娱乐文化': ['电影', '音乐', '游戏', '明星', '娱乐', '文化', '艺术', '书籍', '阅读', '写作'],
}

# 主题类别 → 创作建议
THEME_SUGGESTIONS: dict[str, list[str]] = {
    '健康养生': ['可以结合季节性内容，如夏季养生、冬季保暖等', '考虑目标人群：年轻人、中年人、老年人', '建议提供实用的健康小贴士和方法'],
    '职场发展': ['可以分享职场经验或行业洞察', '考虑不同职业阶段的痛点需求', '建议提供具体可行的解决方案'],
    '情感心理': ['注重情感共鸣和实用性', '考虑不同人生阶段的情感问题', '建议保持专业性和同理心'],
    '财经理财': ['注重数据准确性和时效性', '考虑不同风险偏好的读者需求', '建议提供清晰的投资建议'],
    '科技数码': ['保持技术内容的准确性', '考虑普通用户的技术水平', '建议提供实用的使用技巧'],
    '生活美食': ['注重内容的生活实用性', '考虑季节性和地域差异', '建议提供详细的制作方法'],
    '娱乐文化': ['注重个人观点的独特性', '考虑目标受众的兴趣点', '建议保持内容的新鲜感'],
}

_NON_WORD = re.compile(r"[^一-龥a-zA-Z0-9\s]")


def split_title_words(title: str, stop_words=STOP_WORDS) -> list[str]:
    """
    标题分词：标点替换为空格后按空白切分，过滤单字与停用词，保序去重

    Args:
        title: 文章标题
        stop_words: 停用词集合

    Returns:
        list[str]: 候选关键词（保持出现顺序）
    """
    cleaned = _NON_WORD.sub(" ", title or "")
    words = [w for w in cleaned.split() if len(w) > 1 and w not in stop_words]
    return list(dict.fromkeys(words))


def extract_keywords(title: str) -> list[str]:
    """
    从标题中提取最多 5 个关键词（最长优先）

    Args:
        title: 文章标题

    Returns:
        list[str]: 关键词
    """
    words = split_title_words(title)
    return sorted(words, key=len, reverse=True)[:5]


def generate_search_keywords(keywords: list[str]) -> list[str]:
    """
    生成搜索关键词组合：单词、两两组合、前三词组合，最多 10 个

    Args:
        keywords: 关键词列表

    Returns:
        list[str]: 搜索词
    """
    combos = list(keywords)

    for i in range(len(keywords) - 1):
        for j in range(i + 1, len(keywords)):
            combos.append(f"{keywords[i]} {keywords[j]}")

    if len(keywords) >= 3:
        combos.append(f"{keywords[0]} {keywords[1]} {keywords[2]}")

    return combos[:10]


def analyze_title_theme(title: str) -> dict:
    """
    判断标题主题类别

    命中关键词最多的类别胜出（大小写不敏感）；无命中时归为 "综合"。

    Args:
        title: 文章标题

    Returns:
        dict: category / topics / suggestions
    """
    lower_title = (title or "").lower()

    best_category = None
    best_hits: list[str] = []
    for category, keywords in THEMES.items():
        hits = [k for k in keywords if k.lower() in lower_title]
        if len(hits) > len(best_hits):
            best_category, best_hits = category, hits

    if best_category:
        return {
            'category': best_category,
            'topics': best_hits,
            'suggestions': THEME_SUGGESTIONS.get(best_category, ['建议深入了解该领域的用户需求']),
        }

    return {
        'category': '综合',
        'topics': [],
        'suggestions': ['建议补充更具体的关键词', '考虑目标读者的兴趣点'],
    }
