"""Sample record pages shaped like the portal's info page."""

IDENTITY = "2003000123456"
OTHER_IDENTITY = "2003000654321"

PERSONAL_DATA = """
<div id="date-personale" class="tab-pane">
  <table class="table">
    <tr><th>Numele</th><td>Popescu</td></tr>
    <tr><th>Prenumele</th><td>Ion</td></tr>
    <tr><th>Patronimicul</th><td>Vasile</td></tr>
    <tr><th>Anul de studii</th><td>II</td></tr>
    <tr><th>Grupa</th><td>P-2221</td></tr>
    <tr><th>Specialitatea</th><td>Programare și analiza produselor de program</td></tr>
    <tr><th>Diriginte</th><td>Rusu Ana</td></tr>
    <tr><th>Statut</th><td>Bugetar</td></tr>
  </table>
</div>
"""

CURRENT_GRADES = """
<div id="situatia-curenta" class="tab-pane">
  <div class="panel-group">
    <div class="panel panel-default">
      <div class="panel-heading">
        <h4 class="panel-title"><a data-toggle="collapse" href="#collaps3e0">Semestrul III</a></h4>
      </div>
      <div id="collaps3e0" class="panel-collapse collapse">
        <div class="panel-body">
          <table class="table">
            <tr><th>Denumirea Obiectelor</th><th>Note</th></tr>
            <tr><td><p>Matematica</p></td><td><p>9, 8, 10</p></td></tr>
            <tr><td><p>Fizica</p></td><td><p>7 a 8</p></td></tr>
            <tr><td><p>Matematica</p></td><td><p>5</p></td></tr>
            <tr><td><p>Educatia fizica</p></td><td><p>a, m</p></td></tr>
            <tr><th>Absențe totale</th><th>12</th></tr>
            <tr><td><i>Bolnav</i></td><td><i>4</i></td></tr>
            <tr><td><i>Motivate</i></td><td><i>3</i></td></tr>
            <tr><td><i>Nemotivate</i></td><td><i>5</i></td></tr>
          </table>
        </div>
      </div>
    </div>
    <div class="panel panel-default">
      <div class="panel-heading">
        <h4 class="panel-title"><a data-toggle="collapse" href="#collaps3e1">Semestrul IV</a></h4>
      </div>
      <div id="collaps3e1" class="panel-collapse collapse in">
        <div class="panel-body">
          <table class="table">
            <tr><th>Denumirea Obiectelor</th><th>Note</th></tr>
            <tr><td><p>Matematica</p></td><td><p>8</p></td></tr>
            <tr><td><p>Baze de date</p></td><td><p>10, 9</p></td></tr>
          </table>
        </div>
      </div>
    </div>
  </div>
</div>
"""

EXAMS = """
<div id="note-1" class="tab-pane">
  <div class="panel panel-default">
    <div class="panel-heading"><h4 class="panel-title"><a href="#collapse2">Semestrul III</a></h4></div>
    <div id="collapse2" class="panel-collapse collapse">
      <div class="panel-body">
        <table class="table">
          <tr><th>Denumirea Obiectelor</th><th>Nota</th></tr>
          <tr><td><p>(Teza) Matematica</p></td><td><p>10</p></td></tr>
          <tr><td><p>(Examen) Fizica</p></td><td><p>---</p></td></tr>
        </table>
      </div>
    </div>
  </div>
  <div class="panel panel-default">
    <div class="panel-heading"><h4 class="panel-title"><a href="#collapse3">Semestrul IV</a></h4></div>
    <div id="collapse3" class="panel-collapse collapse">
      <div class="panel-body">
        <table class="table">
          <tr><td><p>(Examen) Baze de date</p></td><td><p>8</p></td></tr>
        </table>
      </div>
    </div>
  </div>
</div>
"""

ANNUAL_GRADES = """
<div id="note-2" class="tab-pane">
  <div class="panel panel-default">
    <div id="collaps2e0" class="panel-collapse collapse">
      <table class="table">
        <tr><th>Disciplina</th><th>Sem. I</th><th>Sem. II</th><th>Anuala</th><th>Evaluare</th><th>Tip</th></tr>
        <tr><td><p>Matematica</p></td><td><p>9</p></td><td><p>8</p></td><td><p>9</p></td><td><p> </p></td><td><p></p></td></tr>
        <tr><td><p>Fizica</p></td><td><p>7</p></td><td><p>8</p></td><td><p>8</p></td><td><p>9</p></td><td><p>Examen</p></td></tr>
      </table>
    </div>
  </div>
</div>
"""


def page(*sections: str) -> str:
    """Wrap sections in a minimal document."""
    return "<html><body><div class=\"tab-content\">{}</div></body></html>".format("".join(sections))


SAMPLE_HTML = page(PERSONAL_DATA, CURRENT_GRADES, EXAMS, ANNUAL_GRADES)

PLAIN_CELLS_GRADES = page(
    """
<div id="situatia-curenta">
  <div class="panel panel-default">
    <div class="panel-heading"><h4 class="panel-title"><a>Semestrul 1</a></h4></div>
    <div id="collaps3e0" class="panel-collapse collapse">
      <table>
        <tr><td>Denumire</td><td>Note</td></tr>
        <tr><td>Chimia</td><td><b>6</b>, <b>7</b></td></tr>
        <tr><td><i>Bolnav</i></td><td><i>2</i></td></tr>
      </table>
    </div>
  </div>
</div>
"""
)

HEADERLESS_GRADES = page(
    """
<div id="situatia-curenta">
  <p>Semestrul I</p>
  <table><tr><td>Matematica</td></tr></table>
</div>
"""
)

EMPTY_PANELS_GRADES = page(
    """
<div id="situatia-curenta">
  <div class="panel panel-default">
    <div class="panel-heading"><h4 class="panel-title"><a>Semestrul I</a></h4></div>
    <div id="collaps3e0" class="panel-collapse collapse">
      <table><tr><th>Denumirea Obiectelor</th><th>Note</th></tr></table>
    </div>
  </div>
</div>
"""
)

LOOSE_EXAMS = page(
    """
<div id="note-1">
  <div id="collapse0" class="panel-collapse collapse">
    <table>
      <tr><td>Denumirea Obiectelor</td><td>Nota</td></tr>
      <tr><td>(Practică) Stagiu de practică</td><td>pending review</td></tr>
      <tr><td>Proiect anual</td><td>9</td></tr>
    </table>
  </div>
</div>
"""
)

MISSING_PANEL_GRADES = page(
    """
<div id="situatia-curenta">
  <div class="panel-group">
    <div class="panel panel-default">
      <div class="panel-heading"><h4 class="panel-title"><a>Semestrul I</a></h4></div>
    </div>
    <div class="panel panel-default">
      <div class="panel-heading"><h4 class="panel-title"><a>Semestrul II</a></h4></div>
      <div id="collaps3e1" class="panel-collapse collapse in">
        <table>
          <tr><td><p>Chimia</p></td><td><p>9</p></td></tr>
        </table>
      </div>
    </div>
  </div>
</div>
"""
)
