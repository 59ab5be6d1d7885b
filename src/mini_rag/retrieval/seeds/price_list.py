"""
Price list seed data.

A small Portuguese-language catalogue of personalised gift products, split
into page-sized chunks. Used to exercise ingestion, search and scoped
clears end to end. Every seeded chunk gets a `test_seed_doc_<i>` source so
clear_test_data() can remove it without touching production documents.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from mini_rag.core.errors import MiniRagError
from mini_rag.core.protocols import INPUT_TYPE_PASSAGE
from mini_rag.retrieval.document import Document

if TYPE_CHECKING:
    from mini_rag.core import DocumentStore, EmbeddingProvider

logger = logging.getLogger(__name__)

SEED_SOURCE_PREFIX = "test_seed_doc_"

_PAGES = [
    """Cria Mineira
Lembrancinhas e Presentes Personalizados
Tabela de Preços
Informações importantes
- Pode haver variação de cor para o produto final.
- Podem ocorrer mínimas variações de tamanho e montagem.
- Leia as políticas de troca, devoluções e ressarcimentos.

Valores válidos para um pedido mínimo de 20 unidades de CADA MODELO.
Para quantidades menores, favor consultar!""",
    """Bloquinhos de Anotação
Bloquinho Personalizado Encadernação tipo 'Livro' (sem arame)
- Capa em papel triplex 300g
- Tamanho: 10x7 cm, miolo 50 folhas
Com mini-lápis, celofane, fita de cetim e tag: R$6,49

Bloquinho Personalizado (wire-o branco)
- Capa em papel triplex 300g
- Tamanho: 10x7 cm, miolo 35 folhas
Com mini-lápis, celofane, fita de cetim e tag: R$9,35""",
    """Porcelanas Personalizadas (Caneca, Porta-Joia, Garrafinha, Vela)
Limite de cores: sem limite (exceto ouro ou prata).
Política de avarias e variações de tamanho descritas no documento.

Mini Caneca 15ml: R$7,65
Caneca de Café 50ml: R$13,20
Imagem de Nossa Senhora (10cm):
- Personalizada no manto + nome: R$34,90
- Detalhes em ouro: +R$27,00
- Nomes diferentes: +R$5,00/unidade""",
    """Aparador de Jóias Oval (10x7cm)
- Frente: R$23,20
- Frente e verso: R$27,50
- Filete Ouro/Prata: +R$18,00
- Nomes diferentes: +R$5,00

Aparador de Jóias Redondo Borda Lisa (8cm)
- Frente: R$16,45
- Frente e verso: R$20,75
- Filete Ouro/Prata: +R$15,00
- Nomes diferentes: +R$5,00""",
    """Porta Joias 6cm
- Tampa: R$17,98
- Filete Ouro/Prata: +R$15,00
- Lateral: +R$4,30
- Fundo: +R$4,30
- Caixinha acrílico: +R$6,80
- Nomes diferentes: +R$5,00

Porta Joias 8cm
- Tampa: R$28,76
- Filete Ouro/Prata: +R$19,90
- Lateral: +R$6,00
- Fundo: +R$6,00
- Nomes diferentes: +R$5,00""",
    """Garrafinha Porcelana (6,5x5cm)
- Frente: R$16,90
- Frente e verso: R$21,20
- Nomes diferentes: +R$5,00

Vasos
Manilha (11,5x6cm): R$38,98
Funil (10x6,5cm): R$40,98
+ Filete Ouro/Prata: +R$18,00
+ Nomes diferentes: +R$5,00

Vela no potinho porcelana (5x7cm)
- Com vela frente: R$19,80
- Com vela frente e verso: R$24,10
- Só potinho frente: R$12,98
- Só potinho frente e verso: R$17,28
- Nomes diferentes: +R$5,00""",
    """Toalhinha Personalizada (23x39cm, algodão)
- Simples: R$7,98
- + Fita de cetim e cartão: R$10,98
- + Cofrinho: R$13,98

Cofrinho personalizado (tampa branca): R$9,98

Jogo da Memória (15 pares)
- Papel cartão 250g
- Papelão cinza rígido
Preço sob consulta

Quebra-cabeça personalizado (21x15cm, 12 peças)
- Celofane + fita + tag: R$8,90
- Latinha personalizada: R$14,90""",
    """Adicionais
- Tubolata personalizado + laço: R$13,00
- Kit Organza + fita + tag: R$3,90
- Kit Celofane + fita + tag: R$2,90
- Caixinha acrílico porta-joias: R$6,90
- Caixinha acetato (aparador): R$13,00
- Caixinha papel cartão (caneca 50ml/porta-joias): R$5,90
- Mini Terço: R$3,00""",
    """Políticas da Loja
- Pagamentos: Mercado Pago, PIX
- Produção sob encomenda, prazo variável
- Arte enviada em até 5 dias úteis após pagamento
- 5 alterações inclusas, extras são cobradas
- Após aprovação da arte não é possível cancelamento sem custo
- Frete por conta do comprador (PAC, Sedex ou transportadora)
- Trocas e devoluções apenas em caso de defeito
- Reclamações de transporte só em até 7 dias do recebimento

Contato
WhatsApp: (37) 9-9988-5619
Instagram: @criamineira
Facebook: /CriaMineira
Site: http://criamineira.com.br
Data de Publicação: 20/01/2025""",
]


@dataclass
class SeedReport:
    """Outcome of a seeding run: how many chunks landed, and what failed."""

    added: int = 0
    total: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return self.added == self.total and not self.errors


def get_seed_documents() -> list[Document]:
    """
    Get the seed chunks, one per catalogue page group.

    Ids are empty: the store assigns them on insert.
    """
    return [
        Document(id="", text=text, source=f"{SEED_SOURCE_PREFIX}{index}")
        for index, text in enumerate(_PAGES)
    ]


async def seed_document_store(
    store: DocumentStore,
    embeddings: EmbeddingProvider,
) -> SeedReport:
    """
    Embed and insert every seed chunk.

    Works with any DocumentStore implementation. A failure on one chunk is
    recorded and the remaining chunks are still attempted.
    """
    docs = get_seed_documents()
    report = SeedReport(total=len(docs))

    for index, doc in enumerate(docs):
        try:
            embedding = await asyncio.to_thread(embeddings.embed, doc.text, INPUT_TYPE_PASSAGE)
            doc_id = await store.add_document(doc.text, doc.source, embedding)
        except MiniRagError as e:
            report.errors.append(f"Document {index}: {e}")
            continue

        if doc_id:
            report.added += 1
        else:
            report.errors.append(f"Document {index} returned an invalid id")

    logger.info("Seeded %d/%d documents", report.added, report.total)
    return report
