# canvas.py
"""
CanvasWidget：负责绘制、鼠标交互和裁剪结果显示
"""
import logging
from dataclasses import dataclass

from PyQt5.QtWidgets import QWidget
from PyQt5.QtCore import pyqtSignal, QPointF, Qt
from PyQt5.QtGui import QPainter, QPainterPath, QPen, QBrush, QColor, QPolygonF

from geometry import Polygon, is_clockwise
from greiner_hormann import Err, clip, get_mode

logger = logging.getLogger(__name__)

SUBJECT_COLOR = QColor(0, 0, 0)  # 主多边形：黑色
CLIPPER_COLOR = QColor(255, 0, 0)  # 裁剪多边形：红色
DRAFT_COLOR = QColor(128, 128, 128)  # 灰色
RING_COLOR = QColor(50, 50, 150)
RESULT_COLOR = QColor(0, 255, 0, 100)  # 半透明绿色填充
PEN_WIDTH = 2


@dataclass
class CanvasPolygon:
    polygon: Polygon
    in_operation_area: bool = False
    is_clipper: bool = False


class CanvasWidget(QWidget):
    polygon_added = pyqtSignal()
    polygons_changed = pyqtSignal()

    def __init__(self):
        super().__init__()
        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.ClickFocus)
        self.polygons = []  # 已构建的多边形列表
        self.current_rings = []  # 当前多边形已闭合的环
        self.current_ring_points = []  # 当前未闭合环的点数组

        # 裁剪结果存储为多边形组 [外环, *洞]
        self.clip_result_groups = []

        self.info_text = "左键：添加点；右键/闭合按钮：闭合环；构建完成：结束一个多边形"

    def mousePressEvent(self, event):
        if event.button() == Qt.LeftButton:
            self.current_ring_points.append((event.x(), event.y()))
            self.update()
        elif event.button() == Qt.RightButton:
            self.close_current_ring()

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing)
        painter.fillRect(self.rect(), QBrush(QColor(255, 255, 255)))

        # 绘制操作区多边形
        self._draw_operation_polygons(painter)
        # 绘制绘制区多边形
        self._draw_draft_polygons(painter)

        if self.clip_result_groups:
            self._draw_clip_results(painter)

        # 始终显示当前正在绘制的环
        self._draw_current_rings(painter)

        # 绘制提示信息（放在左下角）
        painter.setPen(QColor(0, 0, 0))
        margin = 10
        rect = self.rect().adjusted(margin, margin, -margin, -margin)
        painter.drawText(rect, Qt.AlignBottom | Qt.AlignLeft, self.info_text)

    def _draw_operation_polygons(self, painter):
        """绘制操作区多边形"""
        for entry in self.polygons:
            if not entry.in_operation_area:
                continue
            color = CLIPPER_COLOR if entry.is_clipper else SUBJECT_COLOR
            painter.setPen(QPen(color, PEN_WIDTH))
            painter.setBrush(Qt.NoBrush)
            self._draw_polygon(painter, entry.polygon)

    def _draw_draft_polygons(self, painter):
        """绘制绘制区多边形（灰色实线）"""
        painter.setPen(QPen(DRAFT_COLOR, PEN_WIDTH))
        painter.setBrush(Qt.NoBrush)
        for entry in self.polygons:
            if entry.in_operation_area:
                continue
            self._draw_polygon(painter, entry.polygon)

    def _draw_clip_results(self, painter):
        """绘制裁剪结果"""
        painter.setBrush(QBrush(RESULT_COLOR))
        painter.setPen(Qt.NoPen)
        for group in self.clip_result_groups:
            # 奇偶填充规则，洞保持空白
            path = QPainterPath()
            path.setFillRule(Qt.OddEvenFill)
            for polygon in group:
                path.addPolygon(QPolygonF([QPointF(p.x, p.y) for p in polygon.outer]))
                path.closeSubpath()
            painter.drawPath(path)

    def _draw_current_rings(self, painter):
        """绘制当前正在绘制的环"""
        # 当前未闭合环（蓝色实线）
        painter.setPen(QPen(RING_COLOR, PEN_WIDTH))
        r = self.current_ring_points
        for i in range(len(r) - 1):
            painter.drawLine(QPointF(*r[i]), QPointF(*r[i + 1]))

        # 当前已闭合环（蓝色虚线）
        painter.setPen(QPen(RING_COLOR, 1, Qt.DashLine))
        for ring in self.current_rings:
            self._draw_ring(painter, ring)

        # 绘制点
        painter.setBrush(QBrush(QColor(0, 0, 0)))
        for ring in self.current_rings + [self.current_ring_points]:
            for x, y in ring:
                painter.drawEllipse(QPointF(x, y), 3, 3)

    def _draw_polygon(self, painter, polygon):
        self._draw_ring(painter, polygon.outer)
        for inner in polygon.inners:
            self._draw_ring(painter, inner)

    def _draw_ring(self, painter, ring):
        """绘制一个环（自动闭合最后一条边）"""
        n = len(ring)
        for i in range(n):
            x1, y1 = ring[i]
            x2, y2 = ring[(i + 1) % n]
            painter.drawLine(QPointF(x1, y1), QPointF(x2, y2))

    def close_current_ring(self):
        """闭合当前环，少于 3 个点时返回 False"""
        if len(self.current_ring_points) < 3:
            return False

        ring = list(self.current_ring_points)
        if ring[0] == ring[-1]:
            ring = ring[:-1]
        self.current_rings.append(ring)
        self.current_ring_points = []
        self.update()
        return True

    def finish_building_polygon(self):
        """用 current_rings 构建多边形：第一个环为外环，其余为洞"""
        if len(self.current_rings) == 0:
            return False

        norm_rings = []
        for i, ring in enumerate(self.current_rings):
            ring = list(ring)
            # 外环顺时针，洞逆时针
            if (i == 0) != is_clockwise(ring):
                ring.reverse()
            norm_rings.append(ring)

        polygon = Polygon(norm_rings[0], norm_rings[1:])
        if polygon.has_inners():
            logger.info("polygon %d has %d hole(s); clipping only uses its outer ring",
                        len(self.polygons) + 1, len(polygon.inners))

        self.polygons.append(CanvasPolygon(polygon))
        self.current_rings = []
        self.polygon_added.emit()
        self.update()
        return True

    def operation_polygons(self):
        subject = clipper = None
        for entry in self.polygons:
            if not entry.in_operation_area:
                continue
            if entry.is_clipper:
                clipper = entry.polygon
            else:
                subject = entry.polygon
        return subject, clipper

    def perform_clip_and_show(self, subject_forward, clipper_forward):
        """按给定模式裁剪操作区的两个多边形并显示结果"""
        subject, clipper = self.operation_polygons()
        if subject is None or clipper is None:
            raise RuntimeError("请在操作区放置一个主多边形和一个裁剪多边形")

        result = clip(subject, clipper, subject_forward, clipper_forward)
        if isinstance(result, Err):
            raise result.error

        self.clip_result_groups = result.unwrap()
        logger.info("%s: %d group(s)", get_mode(subject_forward, clipper_forward), len(self.clip_result_groups))
        self.update()

    def clear_all(self):
        self.polygons = []
        self.current_rings = []
        self.current_ring_points = []
        self.clip_result_groups = []
        self.update()
