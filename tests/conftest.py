import pytest
from bs4 import BeautifulSoup

from pronote_average.storage import CoefficientStore

PRONOTE_PAGE = """
<html><body>
<div role="tree">
  <div class="fd_ligne" role="treeitem">
    <div class="zone-principale">
      <div class="titre-principal"><span class="ie-titre-gros">TRONC COMMUN &gt; Physique-Chimie</span></div>
    </div>
    <div class="zone-complementaire"><div aria-label=" Moyenne élève : 15,00">15,00</div></div>
  </div>
  <div role="treeitem">
    <div class="zone-principale"><span class="ie-ellipsis">Anglais&nbsp;  LV1</span></div>
    <span aria-label="Moyenne élève : 12.5">12,5</span>
  </div>
  <div class="fd_ligne">
    <div class="titre-principal"><span class="ie-titre-gros"></span><span class="ie-ellipsis">Mathématiques</span></div>
    <div aria-label="Moyenne élève : 9,75"></div>
  </div>
  <div class="fd_ligne">
    <div class="titre-principal"><span class="ie-ellipsis">MATHÉMATIQUES</span></div>
    <div aria-label="Moyenne élève : 18,00"></div>
  </div>
  <div class="fd_ligne">
    <div class="titre-principal"><span class="ie-ellipsis">Histoire-Géographie</span></div>
    <div aria-label="Moyenne élève : Abs"></div>
    <div aria-label="Moyenne classe : 11,20"></div>
  </div>
  <section>
    <div aria-label="Moyenne élève : 14"></div>
  </section>
</div>
</body></html>
"""


@pytest.fixture
def pronote_page():
    return PRONOTE_PAGE


@pytest.fixture
def document(pronote_page):
    return BeautifulSoup(pronote_page, "html.parser")


@pytest.fixture
def store(tmp_path):
    return CoefficientStore(tmp_path / "coefficients.json")
