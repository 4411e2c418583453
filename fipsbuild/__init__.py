"""fipsbuild - 固定版本工具链 + BoringSSL FIPS 构建编排"""

__version__ = "0.1.0"
