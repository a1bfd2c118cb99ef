from typing import List, Sequence
from sklearn.feature_extraction.text import TfidfVectorizer
from sklearn.metrics.pairwise import cosine_similarity
from .schemas import Product


def _document(p: Product) -> str:
    return " ".join([p.name, p.category, p.description, " ".join(p.tags), " ".join(p.colors)])


def recommend_for_product(products: Sequence[Product], product_id: str, n: int = 4) -> List[Product]:
    products = list(products)
    if not products:
        return []
    idx_map = {p.id: i for i, p in enumerate(products)}
    if product_id not in idx_map:
        return products[:n]
    docs = [_document(p) for p in products]
    vec = TfidfVectorizer(stop_words='english')
    try:
        X = vec.fit_transform(docs)
    except ValueError:
        # every document was empty or stop words only
        return [p for p in products if p.id != product_id][:n]
    idx = idx_map[product_id]
    sims = cosine_similarity(X[idx], X).flatten()
    order = sims.argsort(kind="stable")[::-1]
    out = []
    for j in order:
        if products[j].id != product_id:
            out.append(products[j])
        if len(out) >= n:
            break
    return out
