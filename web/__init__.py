"""
HTTP слой реестра сертификатов: роутеры, middleware и обработка ошибок.
"""
