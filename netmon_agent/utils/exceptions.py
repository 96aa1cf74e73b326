"""自定义异常"""


class AlertAgentException(Exception):
    """所有业务异常的基类"""
    pass


class AlertExtractionError(AlertAgentException):
    """单条告警片段解析失败"""
    pass


class UnsupportedDocumentError(AlertAgentException):
    """不支持的上传文件类型"""
    pass


class InvalidQuestionError(AlertAgentException):
    """问题为空或格式错误"""
    pass


class ProviderError(AlertAgentException):
    """LLM / Embedding 调用失败"""
    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(f"Provider call '{operation}' failed: {message}")


class SQLGenerationError(AlertAgentException):
    """无法生成SQL"""
    pass


class QueryRejectedError(AlertAgentException):
    """生成的SQL不是只读SELECT"""
    def __init__(self, query: str):
        self.query = query
        super().__init__("Only SELECT queries are allowed")


class StoreError(AlertAgentException):
    """数据库读写失败"""
    pass
