"""
snapshot.constants
常量定义。
"""

DEFAULT_VIEWPORT = {"width": 1440, "height": 900}
DEFAULT_DEVICE_SCALE_FACTOR = 4.0
REPORT_VERSION = "v0.1"

# 浏览器启动参数（容器内运行需要关闭沙箱）
LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]

# page.goto 允许的 wait_until
WAIT_UNTIL_CHOICES = ("domcontentloaded", "load", "networkidle", "commit")

# 环境变量覆盖前缀：SNAPSHOT_<UPPER(name)>
ENV_PREFIX = "SNAPSHOT_"

# 看板应用已知的加载遮罩选择器
LOADING_SELECTORS = [
    ".loading",
    ".spinner",
    ".smartsheet-loading",
    '[data-loading="true"]',
    ".app-loading",
    ".app-loading-screen-2025",
    ".remove-app-loading-screen-2025",
    ".app-loading-screen",
    ".loading-overlay",
    ".loading-spinner",
]

# 产物文件名
ARTIFACTS = {
    "page": "Dashboard-{n}.png",
    "report": "report.json",
    "targets": "targets.json",
}

# 文档尺寸度量脚本（CSS 像素）
JS_DOCUMENT_METRICS = """
() => ({
  width: Math.max(document.body?.scrollWidth || 0, document.documentElement?.scrollWidth || 0),
  height: Math.max(document.body?.scrollHeight || 0, document.documentElement?.scrollHeight || 0),
  clientWidth: document.documentElement?.clientWidth || window.innerWidth || 0,
  clientHeight: document.documentElement?.clientHeight || window.innerHeight || 0,
  dpr: window.devicePixelRatio || 1
})
"""

JS_SCROLL_TO = "(y) => window.scrollTo(0, y)"

JS_HIDE_SELECTORS = """
(sels) => {
  let hidden = 0;
  for (const el of document.querySelectorAll(sels.join(','))) {
    try {
      if (getComputedStyle(el).display === 'none') continue;
      el.style.display = 'none';
      hidden++;
    } catch (_) {}
  }
  return hidden;
}
"""
