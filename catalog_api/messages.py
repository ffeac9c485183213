# API-facing messages. Clients depend on these strings.

CATEGORY_NAME_REQUIRED = "O nome da categoria é obrigatório"
CATEGORY_NOT_FOUND = "Categoria não encontrada"
CATEGORY_CREATED = "Categoria criada com sucesso!"
CATEGORY_UPDATED = "Categoria atualizada com sucesso!"
CATEGORY_DELETED = "Categoria deletada com sucesso"

PRODUCT_NAME_REQUIRED = "Nome é obrigatório"
PRODUCT_NAME_EMPTY = "Nome não pode estar vazio"
PRODUCT_PRICE_NUMERIC = "O preço deve ser numérico"
PRODUCT_NOT_FOUND = "Produto não encontrado"
PRODUCT_DELETED = "Produto deletado com sucesso"

UNSUPPORTED_IMAGE_FORMAT = "Formato de arquivo não suportado. Apenas JPG e PNG são aceitos."

WELCOME_BANNER = "Bem-vindo à API! Use /api para acessar as rotas disponíveis."
